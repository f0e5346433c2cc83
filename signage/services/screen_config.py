import logging

from sqlalchemy.orm import Session

from signage.errors import MalformedContentError, NotFoundError
from signage.models.content import Content
from signage.models.playlist import Playlist, PlaylistEntry
from signage.models.screen import Screen
from signage.models.timecode import Timecode
from signage.services.clock import timecode_status
from signage.services.composition import parse_composition
from signage.services.matrix import calculate_crop, infer_dimensions, participates_in_matrix
from signage.timeutil import isoformat_utc

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_DURATION_SEC = 10


def effective_duration(entry_duration: int | None, content_duration: int | None) -> int:
    return entry_duration or content_duration or DEFAULT_ENTRY_DURATION_SEC


def _content_payload(content: Content, matrix: dict, screen: Screen) -> dict:
    composition = None
    malformed = False
    crop = None
    if content.type == "COMPOSITION":
        try:
            composition = parse_composition(content.data)
        except MalformedContentError as exc:
            logger.warning("Content %s has a malformed composition: %s", content.id, exc)
            malformed = True
        if composition is not None and matrix["participating"]:
            crop = calculate_crop(
                composition["width"],
                composition["height"],
                screen.matrix_row,
                screen.matrix_col,
                matrix["total_rows"],
                matrix["total_cols"],
            )
    return {
        "id": str(content.id),
        "name": content.name,
        "type": content.type,
        "url": content.url,
        "body": content.body,
        "duration": content.duration,
        "composition": composition,
        "malformed": malformed,
        "crop": crop,
    }


def _playlist_payload(db: Session, playlist: Playlist, matrix: dict, screen: Screen) -> dict:
    rows = (
        db.query(PlaylistEntry, Content)
        .join(Content, Content.id == PlaylistEntry.content_id)
        .filter(PlaylistEntry.playlist_id == playlist.id)
        .order_by(PlaylistEntry.order.asc(), PlaylistEntry.id.asc())
        .all()
    )
    return {
        "id": str(playlist.id),
        "name": playlist.name,
        "entries": [
            {
                "id": str(entry.id),
                "order": entry.order,
                "duration": entry.duration,
                "effective_duration": effective_duration(entry.duration, content.duration),
                "content": _content_payload(content, matrix, screen),
            }
            for entry, content in rows
        ],
    }


def build_screen_config(db: Session, screen_id: str) -> dict:
    """Snapshot of everything a player needs for one screen.

    Plays the screen's default playlist; schedules are not consulted here.
    """
    screen = db.get(Screen, screen_id)
    if not screen:
        raise NotFoundError("Screen", screen_id)

    siblings = db.query(Screen).filter(Screen.space_id == screen.space_id).all()
    participating = participates_in_matrix(screen, siblings)
    if participating:
        dims = infer_dimensions(siblings)
    else:
        dims = {"total_rows": 1, "total_cols": 1}
    matrix = {"participating": participating, **dims}

    playlist = db.get(Playlist, screen.playlist_id) if screen.playlist_id else None
    if screen.playlist_id and playlist is None:
        logger.warning("Screen %s references missing playlist %s", screen.id, screen.playlist_id)

    timecode = db.get(Timecode, screen.timecode_id) if screen.timecode_id else None

    return {
        "screen": {
            "id": str(screen.id),
            "name": screen.name,
            "space_id": str(screen.space_id),
            "status": screen.status,
            "last_seen": isoformat_utc(screen.updated_at),
            "resolution": screen.resolution,
            "orientation": screen.orientation,
            "playlist_id": str(screen.playlist_id) if screen.playlist_id else None,
            "timecode_id": str(timecode.id) if timecode else None,
            "matrix_row": screen.matrix_row,
            "matrix_col": screen.matrix_col,
        },
        "matrix": matrix,
        "playlist": _playlist_payload(db, playlist, matrix, screen) if playlist else None,
        "timecode": timecode_status(timecode) if timecode else None,
    }
