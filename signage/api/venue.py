from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from signage.api.deps import get_bus
from signage.api.screen import cascade_delete_screens
from signage.db import commit_or_raise, get_db
from signage.errors import NotFoundError
from signage.models.screen import Screen
from signage.models.venue import Space, Venue
from signage.schemas.venue import VenueIn, VenueOut
from signage.services.realtime import NotificationBus

router = APIRouter(prefix="/venues", tags=["venues"])


def _get_venue(db: Session, venue_id: str) -> Venue:
    venue = db.get(Venue, venue_id)
    if not venue:
        raise NotFoundError("Venue", venue_id)
    return venue


@router.post("", response_model=VenueOut)
def create_venue(payload: VenueIn, db: Session = Depends(get_db)):
    venue = Venue(name=payload.name.strip())
    db.add(venue)
    commit_or_raise(db, "create venue")
    db.refresh(venue)
    return venue


@router.get("", response_model=list[VenueOut])
def list_venues(db: Session = Depends(get_db)):
    return db.query(Venue).order_by(Venue.name.asc()).all()


@router.get("/{venue_id}", response_model=VenueOut)
def get_venue(venue_id: str, db: Session = Depends(get_db)):
    return _get_venue(db, venue_id)


@router.put("/{venue_id}", response_model=VenueOut)
def update_venue(venue_id: str, payload: VenueIn, db: Session = Depends(get_db)):
    venue = _get_venue(db, venue_id)
    venue.name = payload.name.strip()
    commit_or_raise(db, "update venue")
    db.refresh(venue)
    return venue


@router.delete("/{venue_id}")
def delete_venue(
    venue_id: str,
    db: Session = Depends(get_db),
    bus: NotificationBus = Depends(get_bus),
):
    venue = _get_venue(db, venue_id)
    space_ids = [str(row[0]) for row in db.query(Space.id).filter(Space.venue_id == venue.id).all()]
    screen_ids: list[str] = []
    if space_ids:
        screen_ids = [str(row[0]) for row in db.query(Screen.id).filter(Screen.space_id.in_(space_ids)).all()]
        cascade_delete_screens(db, screen_ids)
        db.query(Space).filter(Space.id.in_(space_ids)).delete(synchronize_session=False)
    db.delete(venue)
    commit_or_raise(db, "delete venue")
    for screen_id in screen_ids:
        bus.publish_to_screens([screen_id], {"type": "screen:deleted", "screenId": screen_id})
    return {"ok": True}
