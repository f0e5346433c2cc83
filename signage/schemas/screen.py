from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ScreenIn(BaseModel):
    name: str = Field(..., min_length=1)
    space_id: str = Field(..., min_length=1)
    resolution: str | None = None
    orientation: Literal["LANDSCAPE", "PORTRAIT"] = "LANDSCAPE"
    status: Literal["ONLINE", "OFFLINE"] = "OFFLINE"
    playlist_id: str | None = None
    timecode_id: str | None = None
    matrix_row: int | None = Field(default=None, ge=0)
    matrix_col: int | None = Field(default=None, ge=0)


class ScreenUpdate(BaseModel):
    """Partial update; fields left out keep their value, explicit nulls clear them."""

    name: str | None = Field(default=None, min_length=1)
    space_id: str | None = Field(default=None, min_length=1)
    resolution: str | None = None
    orientation: Literal["LANDSCAPE", "PORTRAIT"] | None = None
    status: Literal["ONLINE", "OFFLINE"] | None = None
    playlist_id: str | None = None
    timecode_id: str | None = None
    matrix_row: int | None = Field(default=None, ge=0)
    matrix_col: int | None = Field(default=None, ge=0)


class TimecodeAssignIn(BaseModel):
    timecode_id: str | None = None


class ScreenOut(BaseModel):
    id: str
    space_id: str
    name: str
    status: str | None = None
    updated_at: datetime | None = None
    resolution: str | None = None
    orientation: str | None = None
    playlist_id: str | None = None
    timecode_id: str | None = None
    matrix_row: int | None = None
    matrix_col: int | None = None

    class Config:
        from_attributes = True
