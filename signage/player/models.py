from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ContentSnapshot:
    id: str
    name: str
    type: str
    url: str | None = None
    body: str | None = None
    duration: int | None = None
    composition: dict[str, Any] | None = None
    malformed: bool = False
    crop: dict[str, float] | None = None

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> "ContentSnapshot":
        return cls(
            id=str(raw["id"]),
            name=raw.get("name") or "",
            type=raw.get("type") or "",
            url=raw.get("url"),
            body=raw.get("body"),
            duration=raw.get("duration"),
            composition=raw.get("composition"),
            malformed=bool(raw.get("malformed", False)),
            crop=raw.get("crop"),
        )


@dataclass(frozen=True)
class EntrySnapshot:
    id: str
    order: int
    content: ContentSnapshot
    duration: int | None = None

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> "EntrySnapshot":
        return cls(
            id=str(raw["id"]),
            order=int(raw.get("order", 0)),
            content=ContentSnapshot.from_payload(raw["content"]),
            duration=raw.get("duration"),
        )


@dataclass(frozen=True)
class ScreenConfig:
    """One config fetch. A new fetch replaces the whole snapshot."""

    screen_id: str
    name: str
    timecode_id: str | None = None
    matrix_row: int | None = None
    matrix_col: int | None = None
    total_rows: int = 1
    total_cols: int = 1
    playlist_id: str | None = None
    playlist_name: str | None = None
    entries: tuple[EntrySnapshot, ...] = field(default_factory=tuple)

    @property
    def has_playlist(self) -> bool:
        return self.playlist_id is not None

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> "ScreenConfig":
        screen = raw.get("screen") or {}
        matrix = raw.get("matrix") or {}
        playlist = raw.get("playlist")
        entries = tuple(EntrySnapshot.from_payload(item) for item in (playlist or {}).get("entries", []))
        return cls(
            screen_id=str(screen.get("id", "")),
            name=screen.get("name") or "",
            timecode_id=screen.get("timecode_id"),
            matrix_row=screen.get("matrix_row"),
            matrix_col=screen.get("matrix_col"),
            total_rows=int(matrix.get("total_rows") or 1),
            total_cols=int(matrix.get("total_cols") or 1),
            playlist_id=str(playlist["id"]) if playlist else None,
            playlist_name=playlist.get("name") if playlist else None,
            entries=entries,
        )
