from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from signage.api.deps import get_clocks
from signage.db import get_db
from signage.schemas.timecode import TimecodeIn, TimecodeOut, TimecodeStatusOut, TimecodeUpdate
from signage.services.clock import ClockService

router = APIRouter(prefix="/timecodes", tags=["timecodes"])


@router.post("", response_model=TimecodeOut)
def create_timecode(
    payload: TimecodeIn,
    db: Session = Depends(get_db),
    clocks: ClockService = Depends(get_clocks),
):
    return clocks.create(db, payload.name, payload.speed)


@router.get("", response_model=list[TimecodeOut])
def list_timecodes(db: Session = Depends(get_db), clocks: ClockService = Depends(get_clocks)):
    return clocks.list_all(db)


@router.get("/{timecode_id}", response_model=TimecodeOut)
def get_timecode(
    timecode_id: str,
    db: Session = Depends(get_db),
    clocks: ClockService = Depends(get_clocks),
):
    return clocks.get(db, timecode_id)


@router.put("/{timecode_id}", response_model=TimecodeOut)
def update_timecode(
    timecode_id: str,
    payload: TimecodeUpdate,
    db: Session = Depends(get_db),
    clocks: ClockService = Depends(get_clocks),
):
    return clocks.update(db, timecode_id, name=payload.name, speed=payload.speed)


@router.post("/{timecode_id}/start", response_model=TimecodeOut)
def start_timecode(
    timecode_id: str,
    db: Session = Depends(get_db),
    clocks: ClockService = Depends(get_clocks),
):
    return clocks.start(db, timecode_id)


@router.post("/{timecode_id}/stop", response_model=TimecodeOut)
def stop_timecode(
    timecode_id: str,
    db: Session = Depends(get_db),
    clocks: ClockService = Depends(get_clocks),
):
    return clocks.stop(db, timecode_id)


@router.get("/{timecode_id}/status", response_model=TimecodeStatusOut)
def timecode_status(
    timecode_id: str,
    db: Session = Depends(get_db),
    clocks: ClockService = Depends(get_clocks),
):
    return clocks.status(db, timecode_id)


@router.delete("/{timecode_id}")
def delete_timecode(
    timecode_id: str,
    db: Session = Depends(get_db),
    clocks: ClockService = Depends(get_clocks),
):
    clocks.delete(db, timecode_id)
    return {"ok": True}
