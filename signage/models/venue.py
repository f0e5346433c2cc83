import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String

from signage.db import Base
from signage.timeutil import utcnow


class Venue(Base):
    __tablename__ = "venue"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class Space(Base):
    __tablename__ = "space"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_id = Column(String(36), ForeignKey("venue.id"), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)
