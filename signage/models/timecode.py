import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, String

from signage.db import Base
from signage.timeutil import utcnow


class Timecode(Base):
    __tablename__ = "timecode"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    speed = Column(Float, nullable=False, default=1.0)
    started_at = Column(DateTime, nullable=False, default=utcnow)
    is_running = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
