import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from signage.api.deps import get_bus
from signage.db import commit_or_raise, get_db
from signage.errors import NotFoundError
from signage.models.screen import Screen
from signage.services.realtime import NotificationBus, screen_event_stream
from signage.services.screen_config import build_screen_config
from signage.timeutil import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/player", tags=["player"])


def record_heartbeat(db: Session, screen_id: str) -> Screen:
    screen = db.get(Screen, screen_id)
    if not screen:
        raise NotFoundError("Screen", screen_id)
    screen.updated_at = utcnow()
    screen.status = "ONLINE"
    commit_or_raise(db, "record heartbeat")
    return screen


@router.get("/screens/{screen_id}/config")
def screen_config(screen_id: str, db: Session = Depends(get_db)):
    # Every config poll doubles as a heartbeat.
    record_heartbeat(db, screen_id)
    return build_screen_config(db, screen_id)


@router.post("/screens/{screen_id}/heartbeat")
def heartbeat(screen_id: str, db: Session = Depends(get_db)):
    screen = record_heartbeat(db, screen_id)
    return {"ok": True, "last_seen": screen.updated_at}


@router.get("/screens/{screen_id}/stream")
async def screen_stream(
    screen_id: str,
    request: Request,
    bus: NotificationBus = Depends(get_bus),
):
    return StreamingResponse(
        screen_event_stream(bus, screen_id, request.is_disconnected),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
