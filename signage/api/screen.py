from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from signage.api.deps import get_bus, get_clocks
from signage.db import commit_or_raise, get_db
from signage.errors import NotFoundError
from signage.models.playlist import Playlist
from signage.models.schedule import Schedule
from signage.models.screen import Screen
from signage.models.timecode import Timecode
from signage.models.venue import Space
from signage.schemas.schedule import ActiveScheduleOut
from signage.schemas.screen import ScreenIn, ScreenOut, ScreenUpdate, TimecodeAssignIn
from signage.services.clock import ClockService
from signage.services.realtime import NotificationBus, screen_channel
from signage.services.scheduler import resolve_active_schedule

router = APIRouter(prefix="/screens", tags=["screens"])


def cascade_delete_screens(db: Session, screen_ids: list[str]) -> None:
    """Remove screens and their schedules; the caller commits."""
    if not screen_ids:
        return
    db.query(Schedule).filter(Schedule.screen_id.in_(screen_ids)).delete(synchronize_session=False)
    db.query(Screen).filter(Screen.id.in_(screen_ids)).delete(synchronize_session=False)


def _get_screen(db: Session, screen_id: str) -> Screen:
    screen = db.get(Screen, screen_id)
    if not screen:
        raise NotFoundError("Screen", screen_id)
    return screen


def _check_references(
    db: Session,
    space_id: str | None = None,
    playlist_id: str | None = None,
    timecode_id: str | None = None,
) -> None:
    if space_id and not db.get(Space, space_id):
        raise NotFoundError("Space", space_id)
    if playlist_id and not db.get(Playlist, playlist_id):
        raise NotFoundError("Playlist", playlist_id)
    if timecode_id and not db.get(Timecode, timecode_id):
        raise NotFoundError("Timecode", timecode_id)


def _blank_to_none(value: str | None) -> str | None:
    return (value or "").strip() or None


@router.post("", response_model=ScreenOut)
def create_screen(
    payload: ScreenIn,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    playlist_id = _blank_to_none(payload.playlist_id)
    timecode_id = _blank_to_none(payload.timecode_id)
    _check_references(db, payload.space_id, playlist_id, timecode_id)
    screen = Screen(
        name=payload.name.strip(),
        space_id=payload.space_id,
        resolution=_blank_to_none(payload.resolution),
        orientation=payload.orientation,
        status=payload.status,
        playlist_id=playlist_id,
        timecode_id=timecode_id,
        matrix_row=payload.matrix_row,
        matrix_col=payload.matrix_col,
    )
    db.add(screen)
    commit_or_raise(db, "create screen")
    db.refresh(screen)
    bus.publish(
        screen_channel(str(screen.id)),
        {"type": "screen:created", "screenId": str(screen.id), "playlistId": screen.playlist_id},
    )
    return screen


@router.get("", response_model=list[ScreenOut])
def list_screens(space_id: str | None = None, db: Session = Depends(get_db)):
    query = db.query(Screen)
    if space_id:
        query = query.filter(Screen.space_id == space_id)
    return query.order_by(Screen.name.asc()).all()


@router.get("/{screen_id}", response_model=ScreenOut)
def get_screen(screen_id: str, db: Session = Depends(get_db)):
    return _get_screen(db, screen_id)


@router.put("/{screen_id}", response_model=ScreenOut)
def update_screen(
    screen_id: str,
    payload: ScreenUpdate,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    screen = _get_screen(db, screen_id)
    fields = payload.model_fields_set

    if "space_id" in fields and payload.space_id is not None:
        _check_references(db, space_id=payload.space_id)
        screen.space_id = payload.space_id
    if "name" in fields and payload.name is not None:
        screen.name = payload.name.strip()
    if "orientation" in fields and payload.orientation is not None:
        screen.orientation = payload.orientation
    if "status" in fields and payload.status is not None:
        screen.status = payload.status
    if "resolution" in fields:
        screen.resolution = _blank_to_none(payload.resolution)
    if "playlist_id" in fields:
        playlist_id = _blank_to_none(payload.playlist_id)
        _check_references(db, playlist_id=playlist_id)
        screen.playlist_id = playlist_id
    if "timecode_id" in fields:
        timecode_id = _blank_to_none(payload.timecode_id)
        _check_references(db, timecode_id=timecode_id)
        screen.timecode_id = timecode_id
    # Null is a valid value here: it takes the screen out of the matrix.
    if "matrix_row" in fields:
        screen.matrix_row = payload.matrix_row
    if "matrix_col" in fields:
        screen.matrix_col = payload.matrix_col

    commit_or_raise(db, "update screen")
    db.refresh(screen)
    bus.publish(
        screen_channel(str(screen.id)),
        {"type": "screen:updated", "screenId": str(screen.id), "playlistId": screen.playlist_id},
    )
    return screen


@router.put("/{screen_id}/timecode", response_model=ScreenOut)
def assign_timecode(
    screen_id: str,
    payload: TimecodeAssignIn,
    db: Session = Depends(get_db),
    clocks: ClockService = Depends(get_clocks),
):
    return clocks.assign(db, screen_id, payload.timecode_id)


@router.get("/{screen_id}/active-schedule", response_model=ActiveScheduleOut | None)
def active_schedule(screen_id: str, at: datetime | None = None, db: Session = Depends(get_db)):
    return resolve_active_schedule(db, screen_id, at)


@router.delete("/{screen_id}")
def delete_screen(
    screen_id: str,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    screen = _get_screen(db, screen_id)
    screen_id = str(screen.id)
    cascade_delete_screens(db, [screen_id])
    commit_or_raise(db, "delete screen")
    bus.publish(screen_channel(screen_id), {"type": "screen:deleted", "screenId": screen_id})
    return {"ok": True}
