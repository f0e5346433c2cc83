import logging
import os
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

SCHEDULE_TIMEZONE = (os.getenv("SIGNAGE_TIMEZONE", "") or "").strip()
try:
    _SCHEDULE_TZ = ZoneInfo(SCHEDULE_TIMEZONE) if SCHEDULE_TIMEZONE else None
except (ZoneInfoNotFoundError, ValueError):
    logger.warning("Unknown SIGNAGE_TIMEZONE %r, falling back to system local time", SCHEDULE_TIMEZONE)
    _SCHEDULE_TZ = None


def utcnow() -> datetime:
    # Timestamps are stored as naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_now() -> datetime:
    if _SCHEDULE_TZ is None:
        return datetime.now()
    return datetime.now(_SCHEDULE_TZ).replace(tzinfo=None)


def to_local(value: datetime | None) -> datetime:
    """Naive local wall-clock time used for schedule evaluation.

    Naive inputs are taken to already be local wall-clock time.
    """
    if value is None:
        return local_now()
    if value.tzinfo is None:
        return value
    if _SCHEDULE_TZ is None:
        return value.astimezone().replace(tzinfo=None)
    return value.astimezone(_SCHEDULE_TZ).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).isoformat().replace("+00:00", "Z")
