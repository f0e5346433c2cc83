import uuid

from sqlalchemy import Column, DateTime, Integer, String, Text

from signage.db import Base
from signage.timeutil import utcnow

CONTENT_TYPES = ("IMAGE", "VIDEO", "WEBSITE", "MENU_HTML", "COMPOSITION")
URL_CONTENT_TYPES = ("IMAGE", "VIDEO", "WEBSITE")


class Content(Base):
    __tablename__ = "content"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    url = Column(String, nullable=True)
    body = Column(Text, nullable=True)
    data = Column(Text, nullable=True)  # opaque composition envelope (JSON)
    duration = Column(Integer, default=10)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
