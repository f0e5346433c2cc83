from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from signage.db import get_db
from signage.services.health import screen_health

router = APIRouter(prefix="/screen-health", tags=["health"])


@router.get("")
def list_screen_health(at: datetime | None = None, db: Session = Depends(get_db)):
    return screen_health(db, at=at)
