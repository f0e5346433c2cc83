"""Which playlist a screen should be playing at a given instant."""
import logging
from datetime import date, datetime

from sqlalchemy.orm import Session

from signage.errors import NotFoundError
from signage.models.playlist import Playlist
from signage.models.schedule import Schedule
from signage.models.screen import Screen
from signage.timeutil import to_local

logger = logging.getLogger(__name__)

DAY_START = "00:00"
DAY_END = "23:59"


def parse_days_of_week(value: str | None) -> set[int] | None:
    raw = (value or "").strip()
    if not raw:
        return None
    days: set[int] = set()
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            day = int(item)
        except ValueError:
            continue
        if 0 <= day <= 6:
            days.add(day)
    return days


def weekday_sunday_first(moment: datetime) -> int:
    # datetime.weekday() is Monday=0; schedules use Sunday=0.
    return (moment.weekday() + 1) % 7


def date_range_matches(schedule: Schedule, day: date) -> bool:
    start = schedule.start_date
    end = schedule.end_date
    if start is None and end is None:
        return True
    if start is not None and end is not None:
        return start <= day <= end
    if start is not None:
        return start <= day
    return day <= end


def time_window_matches(schedule: Schedule, hm: str) -> bool:
    if not schedule.start_time and not schedule.end_time:
        return True
    # Fixed-width HH:MM strings compare correctly as text.
    return (schedule.start_time or DAY_START) <= hm <= (schedule.end_time or DAY_END)


def day_of_week_matches(schedule: Schedule, weekday: int) -> bool:
    days = parse_days_of_week(schedule.days_of_week)
    if days is None:
        return True
    return weekday in days


def order_candidates(schedules: list[Schedule]) -> list[Schedule]:
    return sorted(
        schedules,
        key=lambda s: (s.priority or 0, s.created_at or datetime.min),
        reverse=True,
    )


def select_active_schedule(schedules: list[Schedule], at: datetime) -> Schedule | None:
    """Pick the active schedule among `schedules` at local wall-clock time `at`.

    Only the top-ranked schedule whose date range matches is tested against
    its time-of-day and day-of-week constraints. If it fails them, nothing is
    active; lower-priority schedules are not consulted.
    """
    candidates = [s for s in schedules if date_range_matches(s, at.date())]
    if not candidates:
        return None
    provisional = order_candidates(candidates)[0]
    if not time_window_matches(provisional, at.strftime("%H:%M")):
        return None
    if not day_of_week_matches(provisional, weekday_sunday_first(at)):
        return None
    return provisional


def resolve_active_schedule(db: Session, screen_id: str, at: datetime | None = None) -> dict | None:
    screen = db.get(Screen, screen_id)
    if not screen:
        raise NotFoundError("Screen", screen_id)

    moment = to_local(at)
    schedules = db.query(Schedule).filter(Schedule.screen_id == screen.id).all()
    winner = select_active_schedule(schedules, moment)
    if winner is None:
        logger.debug("No active schedule for screen %s at %s", screen_id, moment.isoformat())
        return None

    playlist = db.get(Playlist, winner.playlist_id)
    return {
        "id": str(winner.id),
        "name": winner.name,
        "playlist_id": str(winner.playlist_id),
        "playlist_name": playlist.name if playlist else None,
    }
