from datetime import datetime

from pydantic import BaseModel, Field


class VenueIn(BaseModel):
    name: str = Field(..., min_length=1)


class VenueOut(BaseModel):
    id: str
    name: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class SpaceIn(BaseModel):
    name: str = Field(..., min_length=1)
    venue_id: str = Field(..., min_length=1)


class SpaceUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    venue_id: str | None = Field(default=None, min_length=1)


class SpaceOut(BaseModel):
    id: str
    venue_id: str
    name: str

    class Config:
        from_attributes = True
