import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from signage.api.deps import get_bus
from signage.db import commit_or_raise, get_db
from signage.errors import NotFoundError, ValidationFailed
from signage.models.content import Content
from signage.models.playlist import Playlist, PlaylistEntry
from signage.models.schedule import Schedule
from signage.models.screen import Screen
from signage.schemas.playlist import (
    PlaylistEntryIn,
    PlaylistEntryOut,
    PlaylistEntryUpdate,
    PlaylistIn,
    PlaylistOut,
    ReorderIn,
)
from signage.services.realtime import NotificationBus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/playlists", tags=["playlists"])


def screens_using_playlists(db: Session, playlist_ids: list[str]) -> set[str]:
    if not playlist_ids:
        return set()
    by_default = db.query(Screen.id).filter(Screen.playlist_id.in_(playlist_ids)).all()
    by_schedule = db.query(Schedule.screen_id).filter(Schedule.playlist_id.in_(playlist_ids)).all()
    return {str(row[0]) for row in by_default} | {str(row[0]) for row in by_schedule}


def notify_playlists_updated(db: Session, bus: NotificationBus, playlist_ids: list[str]) -> None:
    for playlist_id in playlist_ids:
        screen_ids = screens_using_playlists(db, [playlist_id])
        bus.publish_to_screens(screen_ids, {"type": "playlist:updated", "playlistId": playlist_id})


def _get_playlist(db: Session, playlist_id: str) -> Playlist:
    playlist = db.get(Playlist, playlist_id)
    if not playlist:
        raise NotFoundError("Playlist", playlist_id)
    return playlist


def _get_entry(db: Session, playlist_id: str, entry_id: str) -> PlaylistEntry:
    entry = db.get(PlaylistEntry, entry_id)
    if not entry or entry.playlist_id != playlist_id:
        raise NotFoundError("Playlist entry", entry_id)
    return entry


def ordered_entries(db: Session, playlist_id: str) -> list[PlaylistEntry]:
    return (
        db.query(PlaylistEntry)
        .filter(PlaylistEntry.playlist_id == playlist_id)
        .order_by(PlaylistEntry.order.asc(), PlaylistEntry.id.asc())
        .all()
    )


@router.post("", response_model=PlaylistOut)
def create_playlist(payload: PlaylistIn, db: Session = Depends(get_db)):
    playlist = Playlist(name=payload.name.strip())
    db.add(playlist)
    commit_or_raise(db, "create playlist")
    db.refresh(playlist)
    return playlist


@router.get("", response_model=list[PlaylistOut])
def list_playlists(db: Session = Depends(get_db)):
    return db.query(Playlist).order_by(Playlist.name.asc()).all()


@router.get("/{playlist_id}", response_model=PlaylistOut)
def get_playlist(playlist_id: str, db: Session = Depends(get_db)):
    return _get_playlist(db, playlist_id)


@router.put("/{playlist_id}", response_model=PlaylistOut)
def update_playlist(
    playlist_id: str,
    payload: PlaylistIn,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    playlist = _get_playlist(db, playlist_id)
    cleaned = payload.name.strip()
    if not cleaned:
        raise ValidationFailed.field("name", "Playlist name cannot be empty")
    playlist.name = cleaned
    commit_or_raise(db, "update playlist")
    db.refresh(playlist)
    notify_playlists_updated(db, bus, [playlist_id])
    return playlist


@router.delete("/{playlist_id}")
def delete_playlist(
    playlist_id: str,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    playlist = _get_playlist(db, playlist_id)
    affected = screens_using_playlists(db, [playlist_id])
    db.query(PlaylistEntry).filter(PlaylistEntry.playlist_id == playlist_id).delete(synchronize_session=False)
    db.query(Schedule).filter(Schedule.playlist_id == playlist_id).delete(synchronize_session=False)
    db.query(Screen).filter(Screen.playlist_id == playlist_id).update(
        {"playlist_id": None},
        synchronize_session=False,
    )
    db.delete(playlist)
    commit_or_raise(db, "delete playlist")
    bus.publish_to_screens(affected, {"type": "playlist:updated", "playlistId": playlist_id})
    return {"ok": True}


@router.get("/{playlist_id}/entries", response_model=list[PlaylistEntryOut])
def list_entries(playlist_id: str, db: Session = Depends(get_db)):
    _get_playlist(db, playlist_id)
    return ordered_entries(db, playlist_id)


@router.post("/{playlist_id}/entries", response_model=PlaylistEntryOut)
def add_entry(
    playlist_id: str,
    payload: PlaylistEntryIn,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    _get_playlist(db, playlist_id)
    content = db.get(Content, payload.content_id)
    if not content:
        raise NotFoundError("Content", payload.content_id)

    last = (
        db.query(PlaylistEntry.order)
        .filter(PlaylistEntry.playlist_id == playlist_id)
        .order_by(PlaylistEntry.order.desc())
        .first()
    )
    next_order = (last[0] + 1) if last else 0
    entry = PlaylistEntry(
        playlist_id=playlist_id,
        content_id=content.id,
        order=next_order,
        duration=payload.duration if payload.duration is not None else content.duration,
    )
    db.add(entry)
    commit_or_raise(db, "add playlist entry")
    db.refresh(entry)
    notify_playlists_updated(db, bus, [playlist_id])
    return entry


@router.put("/{playlist_id}/entries/{entry_id}", response_model=PlaylistEntryOut)
def update_entry(
    playlist_id: str,
    entry_id: str,
    payload: PlaylistEntryUpdate,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    entry = _get_entry(db, playlist_id, entry_id)
    # An explicit null removes the override so the content duration applies.
    if "duration" in payload.model_fields_set:
        entry.duration = payload.duration
    commit_or_raise(db, "update playlist entry")
    db.refresh(entry)
    notify_playlists_updated(db, bus, [playlist_id])
    return entry


@router.delete("/{playlist_id}/entries/{entry_id}")
def remove_entry(
    playlist_id: str,
    entry_id: str,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    entry = _get_entry(db, playlist_id, entry_id)
    db.delete(entry)
    commit_or_raise(db, "remove playlist entry")
    notify_playlists_updated(db, bus, [playlist_id])
    return {"ok": True}


@router.put("/{playlist_id}/order", response_model=list[PlaylistEntryOut])
def reorder_entries(
    playlist_id: str,
    payload: ReorderIn,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    _get_playlist(db, playlist_id)
    entries = {str(entry.id): entry for entry in ordered_entries(db, playlist_id)}
    submitted = [str(entry_id) for entry_id in payload.entry_ids]

    if len(set(submitted)) != len(submitted):
        raise ValidationFailed.field("entry_ids", "Entry ids must not repeat")
    unknown = sorted(set(submitted) - set(entries))
    missing = sorted(set(entries) - set(submitted))
    if unknown or missing:
        errors: list[str] = []
        if unknown:
            errors.append(f"Unknown entry ids: {', '.join(unknown)}")
        if missing:
            errors.append(f"Missing entry ids: {', '.join(missing)}")
        raise ValidationFailed({"entry_ids": errors})

    for position, entry_id in enumerate(submitted):
        entries[entry_id].order = position
    commit_or_raise(db, "reorder playlist")
    logger.info("Reordered %d entries in playlist %s", len(submitted), playlist_id)
    notify_playlists_updated(db, bus, [playlist_id])
    return ordered_entries(db, playlist_id)
