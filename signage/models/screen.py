import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from signage.db import Base
from signage.timeutil import utcnow


class Screen(Base):
    __tablename__ = "screen"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    space_id = Column(String(36), ForeignKey("space.id"), nullable=False)
    name = Column(String, nullable=False)
    # Advisory only; liveness is derived from updated_at.
    status = Column(String, default="OFFLINE")
    updated_at = Column(DateTime, default=utcnow)
    resolution = Column(String, nullable=True)
    orientation = Column(String, default="LANDSCAPE")
    playlist_id = Column(String(36), ForeignKey("playlist.id"), nullable=True)
    timecode_id = Column(String(36), ForeignKey("timecode.id"), nullable=True)
    matrix_row = Column(Integer, nullable=True)
    matrix_col = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow)
