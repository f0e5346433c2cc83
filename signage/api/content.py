from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from signage.api.deps import get_bus
from signage.api.playlist import notify_playlists_updated
from signage.db import commit_or_raise, get_db
from signage.errors import NotFoundError, ValidationFailed
from signage.models.content import URL_CONTENT_TYPES, Content
from signage.models.playlist import PlaylistEntry
from signage.schemas.content import ContentIn, ContentOut, ContentUpdate
from signage.services.composition import validate_composition_data
from signage.services.realtime import NotificationBus

router = APIRouter(prefix="/content", tags=["content"])


def _get_content(db: Session, content_id: str) -> Content:
    content = db.get(Content, content_id)
    if not content:
        raise NotFoundError("Content", content_id)
    return content


def _validate_for_type(content_type: str, url: str | None, body: str | None, data: str | None) -> None:
    if content_type in URL_CONTENT_TYPES and not (url or "").strip():
        raise ValidationFailed.field("url", "A URL is required for Image, Video, or Website content.")
    if content_type == "MENU_HTML" and not (body or "").strip():
        raise ValidationFailed.field("body", "HTML body is required for Menu content.")
    if content_type == "COMPOSITION":
        validate_composition_data(data)


def _playlist_ids_for_content(db: Session, content_id: str) -> list[str]:
    rows = db.query(PlaylistEntry.playlist_id).filter(PlaylistEntry.content_id == content_id).distinct().all()
    return sorted(str(row[0]) for row in rows)


@router.post("", response_model=ContentOut)
def create_content(payload: ContentIn, db: Session = Depends(get_db)):
    _validate_for_type(payload.type, payload.url, payload.body, payload.data)
    content = Content(
        name=payload.name.strip(),
        type=payload.type,
        url=(payload.url or "").strip() or None,
        body=payload.body or None,
        data=payload.data or None,
        duration=payload.duration,
    )
    db.add(content)
    commit_or_raise(db, "create content")
    db.refresh(content)
    return content


@router.get("", response_model=list[ContentOut])
def list_content(type: str | None = None, q: str | None = None, db: Session = Depends(get_db)):
    query = db.query(Content)
    if type:
        query = query.filter(Content.type == type.strip().upper())
    if q:
        keyword = f"%{q.strip().lower()}%"
        if keyword != "%%":
            query = query.filter(func.lower(Content.name).like(keyword))
    return query.order_by(Content.created_at.desc(), Content.id.desc()).all()


@router.get("/{content_id}", response_model=ContentOut)
def get_content(content_id: str, db: Session = Depends(get_db)):
    return _get_content(db, content_id)


@router.put("/{content_id}", response_model=ContentOut)
def update_content(
    content_id: str,
    payload: ContentUpdate,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    content = _get_content(db, content_id)
    fields = payload.model_fields_set
    url = payload.url if "url" in fields else content.url
    body = payload.body if "body" in fields else content.body
    data = payload.data if "data" in fields else content.data
    _validate_for_type(content.type, url, body, data)

    if "name" in fields and payload.name is not None:
        content.name = payload.name.strip()
    if "duration" in fields and payload.duration is not None:
        content.duration = payload.duration
    content.url = (url or "").strip() or None
    content.body = body or None
    content.data = data or None
    commit_or_raise(db, "update content")
    db.refresh(content)
    notify_playlists_updated(db, bus, _playlist_ids_for_content(db, content_id))
    return content


@router.delete("/{content_id}")
def delete_content(
    content_id: str,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    content = _get_content(db, content_id)
    playlist_ids = _playlist_ids_for_content(db, content_id)
    db.query(PlaylistEntry).filter(PlaylistEntry.content_id == content_id).delete(synchronize_session=False)
    db.delete(content)
    commit_or_raise(db, "delete content")
    notify_playlists_updated(db, bus, playlist_ids)
    return {"ok": True}
