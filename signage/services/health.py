from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from signage.models.schedule import Schedule
from signage.models.screen import Screen
from signage.models.venue import Space
from signage.services.scheduler import resolve_active_schedule
from signage.timeutil import isoformat_utc, utcnow

ONLINE_THRESHOLD_SEC = 60


def is_online(last_heartbeat: datetime | None, now: datetime | None = None) -> bool:
    if last_heartbeat is None:
        return False
    current = now or utcnow()
    return (current - last_heartbeat).total_seconds() < ONLINE_THRESHOLD_SEC


def screen_health(db: Session, now: datetime | None = None, at: datetime | None = None) -> list[dict]:
    """Per-screen liveness plus the schedule that should be active.

    `now` is naive UTC for the heartbeat comparison; `at` is the instant used
    for schedule resolution and defaults to the current local time.
    """
    current = now or utcnow()
    screens = db.query(Screen).order_by(Screen.name.asc()).all()
    space_names = {str(space.id): space.name for space in db.query(Space).all()}
    schedule_counts = dict(
        db.query(Schedule.screen_id, func.count(Schedule.id)).group_by(Schedule.screen_id).all()
    )

    report = []
    for screen in screens:
        active = resolve_active_schedule(db, screen.id, at)
        report.append(
            {
                "id": str(screen.id),
                "name": screen.name,
                "space": space_names.get(str(screen.space_id)),
                "status": "online" if is_online(screen.updated_at, current) else "offline",
                "lastSeen": isoformat_utc(screen.updated_at),
                "scheduleCount": int(schedule_counts.get(screen.id, 0)),
                "activeSchedule": (
                    {
                        "id": active["id"],
                        "name": active["name"],
                        "playlistName": active["playlist_name"],
                    }
                    if active
                    else None
                ),
            }
        )
    return report
