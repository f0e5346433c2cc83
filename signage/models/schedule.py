import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String

from signage.db import Base
from signage.timeutil import utcnow


class Schedule(Base):
    __tablename__ = "schedule"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    screen_id = Column(String(36), ForeignKey("screen.id"), nullable=False)
    playlist_id = Column(String(36), ForeignKey("playlist.id"), nullable=False)
    name = Column(String, nullable=True)
    priority = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)  # HH:MM
    days_of_week = Column(String, nullable=True)  # CSV: 0,1,2,3,4,5,6 (0 = Sunday)
    created_at = Column(DateTime, default=utcnow)
