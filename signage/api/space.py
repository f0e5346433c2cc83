from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from signage.api.deps import get_bus
from signage.api.screen import cascade_delete_screens
from signage.db import commit_or_raise, get_db
from signage.errors import NotFoundError
from signage.models.screen import Screen
from signage.models.venue import Space, Venue
from signage.schemas.venue import SpaceIn, SpaceOut, SpaceUpdate
from signage.services.realtime import NotificationBus

router = APIRouter(prefix="/spaces", tags=["spaces"])


def _get_space(db: Session, space_id: str) -> Space:
    space = db.get(Space, space_id)
    if not space:
        raise NotFoundError("Space", space_id)
    return space


def _require_venue(db: Session, venue_id: str) -> None:
    if not db.get(Venue, venue_id):
        raise NotFoundError("Venue", venue_id)


@router.post("", response_model=SpaceOut)
def create_space(payload: SpaceIn, db: Session = Depends(get_db)):
    _require_venue(db, payload.venue_id)
    space = Space(name=payload.name.strip(), venue_id=payload.venue_id)
    db.add(space)
    commit_or_raise(db, "create space")
    db.refresh(space)
    return space


@router.get("", response_model=list[SpaceOut])
def list_spaces(venue_id: str | None = None, db: Session = Depends(get_db)):
    query = db.query(Space)
    if venue_id:
        query = query.filter(Space.venue_id == venue_id)
    return query.order_by(Space.name.asc()).all()


@router.get("/{space_id}", response_model=SpaceOut)
def get_space(space_id: str, db: Session = Depends(get_db)):
    return _get_space(db, space_id)


@router.put("/{space_id}", response_model=SpaceOut)
def update_space(space_id: str, payload: SpaceUpdate, db: Session = Depends(get_db)):
    space = _get_space(db, space_id)
    if payload.venue_id is not None:
        _require_venue(db, payload.venue_id)
        space.venue_id = payload.venue_id
    if payload.name is not None:
        space.name = payload.name.strip()
    commit_or_raise(db, "update space")
    db.refresh(space)
    return space


@router.delete("/{space_id}")
def delete_space(
    space_id: str,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    space = _get_space(db, space_id)
    screen_ids = [str(row[0]) for row in db.query(Screen.id).filter(Screen.space_id == space.id).all()]
    cascade_delete_screens(db, screen_ids)
    db.delete(space)
    commit_or_raise(db, "delete space")
    for screen_id in screen_ids:
        bus.publish_to_screens([screen_id], {"type": "screen:deleted", "screenId": screen_id})
    return {"ok": True}
