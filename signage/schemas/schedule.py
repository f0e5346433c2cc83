import re
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

_HM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def normalize_hm(value: str | None) -> str | None:
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None
    # Accept HH:MM:SS from time pickers, keep minute precision.
    if len(raw) == 8 and raw[5] == ":":
        raw = raw[:5]
    if not _HM_PATTERN.match(raw):
        raise ValueError("Time must be HH:MM (00:00-23:59)")
    return raw


def normalize_days(value) -> list[int] | None:
    if value is None:
        return None
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",") if item.strip()]
    else:
        items = list(value)
    if not items:
        return None
    days: set[int] = set()
    for item in items:
        try:
            day = int(item)
        except (TypeError, ValueError):
            raise ValueError("daysOfWeek must contain integers 0-6") from None
        if day < 0 or day > 6:
            raise ValueError("daysOfWeek must be in range 0-6 (0 = Sunday)")
        days.add(day)
    return sorted(days)


class _ScheduleFields(BaseModel):
    @field_validator("start_time", "end_time", mode="before", check_fields=False)
    @classmethod
    def _check_time(cls, value):
        return normalize_hm(value)

    @field_validator("days_of_week", mode="before", check_fields=False)
    @classmethod
    def _check_days(cls, value):
        return normalize_days(value)

    @field_validator("start_date", "end_date", mode="before", check_fields=False)
    @classmethod
    def _check_date(cls, value):
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return None
            # Full ISO timestamps from date pickers are cut to the calendar day.
            return raw[:10]
        if isinstance(value, datetime):
            return value.date()
        return value


class ScheduleIn(_ScheduleFields):
    screen_id: str = Field(..., min_length=1)
    playlist_id: str = Field(..., min_length=1)
    name: str | None = None
    priority: int = 0
    start_date: date | None = None
    end_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    days_of_week: list[int] | None = None

    @model_validator(mode="after")
    def _check_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class ScheduleUpdate(_ScheduleFields):
    playlist_id: str | None = Field(default=None, min_length=1)
    name: str | None = None
    priority: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    days_of_week: list[int] | None = None


class ScheduleOut(BaseModel):
    id: str
    screen_id: str
    playlist_id: str
    name: str | None = None
    priority: int
    start_date: date | None = None
    end_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    days_of_week: list[int] | None = None
    created_at: datetime | None = None

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _split_days(cls, value):
        return normalize_days(value)

    class Config:
        from_attributes = True


class ActiveScheduleOut(BaseModel):
    id: str
    name: str | None = None
    playlist_id: str
    playlist_name: str | None = None
