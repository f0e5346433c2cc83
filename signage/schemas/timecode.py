from datetime import datetime

from pydantic import BaseModel, Field


class TimecodeIn(BaseModel):
    name: str = Field(..., min_length=1)
    speed: float = Field(default=1.0, gt=0.1, le=10)


class TimecodeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    speed: float | None = Field(default=None, gt=0.1, le=10)


class TimecodeOut(BaseModel):
    id: str
    name: str
    speed: float
    started_at: datetime
    is_running: bool

    class Config:
        from_attributes = True


class TimecodeStatusOut(BaseModel):
    id: str
    name: str
    startedAt: datetime
    speed: float
    isRunning: bool
    elapsedMs: float
