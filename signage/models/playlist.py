import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from signage.db import Base
from signage.timeutil import utcnow


class Playlist(Base):
    __tablename__ = "playlist"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class PlaylistEntry(Base):
    __tablename__ = "playlist_entry"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    playlist_id = Column(String(36), ForeignKey("playlist.id"), nullable=False)
    content_id = Column(String(36), ForeignKey("content.id"), nullable=False)
    order = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=True)
