import logging
import threading
from datetime import datetime

from sqlalchemy.orm import Session

from signage.db import commit_or_raise
from signage.errors import NotFoundError, ValidationFailed
from signage.models.screen import Screen
from signage.models.timecode import Timecode
from signage.services.realtime import NotificationBus, screen_channel
from signage.timeutil import utcnow

logger = logging.getLogger(__name__)

MIN_SPEED_EXCLUSIVE = 0.1
MAX_SPEED = 10.0


def validate_speed(speed) -> float:
    try:
        value = float(speed)
    except (TypeError, ValueError):
        raise ValidationFailed.field("speed", "Speed must be a number") from None
    if value != value or value <= MIN_SPEED_EXCLUSIVE:
        raise ValidationFailed.field("speed", "Speed must be greater than 0.1")
    if value > MAX_SPEED:
        raise ValidationFailed.field("speed", "Speed cannot exceed 10")
    return value


def validate_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationFailed.field("name", "Name is required")
    return cleaned


def elapsed_ms(timecode: Timecode, now: datetime | None = None) -> float:
    # A stopped clock reads 0, not the elapsed time at the moment it stopped.
    if not timecode.is_running:
        return 0.0
    current = now or utcnow()
    return (current - timecode.started_at).total_seconds() * 1000.0 * float(timecode.speed)


def timecode_status(timecode: Timecode, now: datetime | None = None) -> dict:
    return {
        "id": str(timecode.id),
        "name": timecode.name,
        "startedAt": timecode.started_at,
        "speed": float(timecode.speed),
        "isRunning": bool(timecode.is_running),
        "elapsedMs": elapsed_ms(timecode, now),
    }


class ClockService:
    """Named virtual clocks; writes to one clock are serialized per clock id."""

    def __init__(self, bus: NotificationBus) -> None:
        self._bus = bus
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, db: Session, timecode_id: str) -> threading.Lock:
        # Only existing clocks get a lock, so unknown ids never grow the map.
        self._get(db, timecode_id)
        with self._locks_guard:
            lock = self._locks.get(timecode_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[timecode_id] = lock
            return lock

    @staticmethod
    def _get(db: Session, timecode_id: str) -> Timecode:
        timecode = db.get(Timecode, timecode_id)
        if not timecode:
            raise NotFoundError("Timecode", timecode_id)
        return timecode

    @staticmethod
    def _bound_screen_ids(db: Session, timecode_id: str) -> list[str]:
        rows = db.query(Screen.id).filter(Screen.timecode_id == timecode_id).all()
        return [str(row[0]) for row in rows]

    def list_all(self, db: Session) -> list[Timecode]:
        return db.query(Timecode).order_by(Timecode.created_at.desc()).all()

    def get(self, db: Session, timecode_id: str) -> Timecode:
        return self._get(db, timecode_id)

    def create(self, db: Session, name: str, speed: float = 1.0) -> Timecode:
        timecode = Timecode(
            name=validate_name(name),
            speed=validate_speed(speed),
            started_at=utcnow(),
            is_running=True,
        )
        db.add(timecode)
        commit_or_raise(db, "create timecode")
        db.refresh(timecode)
        logger.info("Created timecode %s (%s) at speed %.2f", timecode.id, timecode.name, timecode.speed)
        return timecode

    def update(
        self,
        db: Session,
        timecode_id: str,
        name: str | None = None,
        speed: float | None = None,
    ) -> Timecode:
        new_name = validate_name(name) if name is not None else None
        new_speed = validate_speed(speed) if speed is not None else None
        with self._lock_for(db, timecode_id):
            timecode = self._get(db, timecode_id)
            if new_name is not None:
                timecode.name = new_name
            if new_speed is not None:
                timecode.speed = new_speed
            commit_or_raise(db, "update timecode")
            db.refresh(timecode)
        self._bus.publish_to_screens(
            self._bound_screen_ids(db, timecode_id),
            {
                "type": "timecode:updated",
                "timecodeId": str(timecode.id),
                "name": timecode.name,
                "speed": float(timecode.speed),
            },
        )
        return timecode

    def start(self, db: Session, timecode_id: str, now: datetime | None = None) -> Timecode:
        with self._lock_for(db, timecode_id):
            timecode = self._get(db, timecode_id)
            timecode.started_at = now or utcnow()
            timecode.is_running = True
            commit_or_raise(db, "start timecode")
            db.refresh(timecode)
        screen_ids = self._bound_screen_ids(db, timecode_id)
        self._bus.publish_to_screens(
            screen_ids,
            {
                "type": "timecode:started",
                "timecodeId": str(timecode.id),
                "startedAt": timecode.started_at,
            },
        )
        logger.info("Started timecode %s for %d screen(s)", timecode_id, len(screen_ids))
        return timecode

    def stop(self, db: Session, timecode_id: str) -> Timecode:
        with self._lock_for(db, timecode_id):
            timecode = self._get(db, timecode_id)
            timecode.is_running = False
            commit_or_raise(db, "stop timecode")
            db.refresh(timecode)
        screen_ids = self._bound_screen_ids(db, timecode_id)
        self._bus.publish_to_screens(
            screen_ids,
            {"type": "timecode:stopped", "timecodeId": str(timecode.id)},
        )
        logger.info("Stopped timecode %s for %d screen(s)", timecode_id, len(screen_ids))
        return timecode

    def status(self, db: Session, timecode_id: str, now: datetime | None = None) -> dict:
        return timecode_status(self._get(db, timecode_id), now)

    def assign(self, db: Session, screen_id: str, timecode_id: str | None) -> Screen:
        screen = db.get(Screen, screen_id)
        if not screen:
            raise NotFoundError("Screen", screen_id)
        normalized = (timecode_id or "").strip() or None
        if normalized is not None:
            self._get(db, normalized)
        screen.timecode_id = normalized
        commit_or_raise(db, "assign timecode")
        db.refresh(screen)
        self._bus.publish(
            screen_channel(str(screen.id)),
            {"type": "timecode:assigned", "timecodeId": normalized},
        )
        return screen

    def delete(self, db: Session, timecode_id: str) -> None:
        with self._lock_for(db, timecode_id):
            timecode = self._get(db, timecode_id)
            screen_ids = self._bound_screen_ids(db, timecode_id)
            db.query(Screen).filter(Screen.timecode_id == timecode_id).update(
                {"timecode_id": None},
                synchronize_session=False,
            )
            db.delete(timecode)
            commit_or_raise(db, "delete timecode")
        with self._locks_guard:
            self._locks.pop(timecode_id, None)
        self._bus.publish_to_screens(screen_ids, {"type": "timecode:assigned", "timecodeId": None})
