from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from signage.api.deps import get_bus
from signage.db import commit_or_raise, get_db
from signage.errors import NotFoundError, ValidationFailed
from signage.models.playlist import Playlist
from signage.models.schedule import Schedule
from signage.models.screen import Screen
from signage.schemas.schedule import ScheduleIn, ScheduleOut, ScheduleUpdate
from signage.services.realtime import NotificationBus, screen_channel

router = APIRouter(prefix="/schedules", tags=["schedules"])

DEFAULT_SCHEDULE_NAME = "Untitled Schedule"


def _days_csv(days: list[int] | None) -> str | None:
    if not days:
        return None
    return ",".join(str(day) for day in sorted(set(days)))


def _get_schedule(db: Session, schedule_id: str) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if not schedule:
        raise NotFoundError("Schedule", schedule_id)
    return schedule


def _require_playlist(db: Session, playlist_id: str) -> None:
    if not db.get(Playlist, playlist_id):
        raise NotFoundError("Playlist", playlist_id)


def _publish_change(bus: NotificationBus, schedule: Schedule) -> None:
    bus.publish(
        screen_channel(str(schedule.screen_id)),
        {"type": "schedule:changed", "scheduleId": str(schedule.id), "screenId": str(schedule.screen_id)},
    )


@router.post("", response_model=ScheduleOut)
def create_schedule(
    payload: ScheduleIn,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    if not db.get(Screen, payload.screen_id):
        raise NotFoundError("Screen", payload.screen_id)
    _require_playlist(db, payload.playlist_id)
    schedule = Schedule(
        screen_id=payload.screen_id,
        playlist_id=payload.playlist_id,
        name=(payload.name or "").strip() or DEFAULT_SCHEDULE_NAME,
        priority=payload.priority,
        start_date=payload.start_date,
        end_date=payload.end_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        days_of_week=_days_csv(payload.days_of_week),
    )
    db.add(schedule)
    commit_or_raise(db, "create schedule")
    db.refresh(schedule)
    _publish_change(bus, schedule)
    return schedule


@router.get("", response_model=list[ScheduleOut])
def list_schedules(screen_id: str | None = None, db: Session = Depends(get_db)):
    query = db.query(Schedule)
    if screen_id:
        query = query.filter(Schedule.screen_id == screen_id)
    return query.order_by(Schedule.priority.desc(), Schedule.created_at.desc()).all()


@router.get("/{schedule_id}", response_model=ScheduleOut)
def get_schedule(schedule_id: str, db: Session = Depends(get_db)):
    return _get_schedule(db, schedule_id)


@router.put("/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: str,
    payload: ScheduleUpdate,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    schedule = _get_schedule(db, schedule_id)
    fields = payload.model_fields_set

    new_start_date = payload.start_date if "start_date" in fields else schedule.start_date
    new_end_date = payload.end_date if "end_date" in fields else schedule.end_date
    if new_start_date and new_end_date and new_start_date > new_end_date:
        raise ValidationFailed.field("start_date", "start_date must not be after end_date")

    if "playlist_id" in fields and payload.playlist_id is not None:
        _require_playlist(db, payload.playlist_id)
        schedule.playlist_id = payload.playlist_id
    if "name" in fields:
        schedule.name = (payload.name or "").strip() or DEFAULT_SCHEDULE_NAME
    if "priority" in fields and payload.priority is not None:
        schedule.priority = payload.priority
    schedule.start_date = new_start_date
    schedule.end_date = new_end_date
    if "start_time" in fields:
        schedule.start_time = payload.start_time
    if "end_time" in fields:
        schedule.end_time = payload.end_time
    if "days_of_week" in fields:
        schedule.days_of_week = _days_csv(payload.days_of_week)

    commit_or_raise(db, "update schedule")
    db.refresh(schedule)
    _publish_change(bus, schedule)
    return schedule


@router.delete("/{schedule_id}")
def delete_schedule(
    schedule_id: str,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    schedule = _get_schedule(db, schedule_id)
    event = {"type": "schedule:changed", "scheduleId": str(schedule.id), "screenId": str(schedule.screen_id)}
    channel = screen_channel(str(schedule.screen_id))
    db.delete(schedule)
    commit_or_raise(db, "delete schedule")
    bus.publish(channel, event)
    return {"ok": True}
