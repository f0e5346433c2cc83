"""Client-side playback state machine.

LOCAL mode walks the playlist on per-entry timers and wraps around.
CLOCK_LOCKED mode derives the entry from a shared clock's elapsed time and
holds on the last entry once the elapsed time passes the playlist's end.
"""
import logging
from enum import Enum

from signage.player.models import EntrySnapshot, ScreenConfig

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_DURATION_SEC = 10


class Mode(str, Enum):
    LOCAL = "LOCAL"
    CLOCK_LOCKED = "CLOCK_LOCKED"


def entry_duration_sec(entry: EntrySnapshot) -> float:
    return float(entry.duration or entry.content.duration or DEFAULT_ENTRY_DURATION_SEC)


def clock_locked_index(durations_sec: list[float], elapsed_ms: float) -> int:
    target = 0
    start_ms = 0.0
    for index, duration in enumerate(durations_sec):
        if start_ms > elapsed_ms:
            break
        target = index
        start_ms += duration * 1000.0
    return target


class PlaybackSequencer:
    def __init__(self, config: ScreenConfig | None = None, now: float = 0.0) -> None:
        self.load(config, now)

    def load(self, config: ScreenConfig | None, now: float) -> None:
        """Replace the snapshot and restart from entry 0.

        The mode is only decided here, so a running sequence never switches
        timing authority.
        """
        self.config = config
        self.entries: tuple[EntrySnapshot, ...] = config.entries if config else ()
        self.mode = Mode.CLOCK_LOCKED if config and config.timecode_id else Mode.LOCAL
        self.current_index = 0
        self._durations = [entry_duration_sec(entry) for entry in self.entries]
        if self.mode is Mode.LOCAL and self.entries:
            self._deadline: float | None = now + self._durations[0]
        else:
            self._deadline = None
        logger.debug("Loaded %d entries in %s mode", len(self.entries), self.mode.value)

    @property
    def idle(self) -> bool:
        return not self.entries

    @property
    def next_deadline(self) -> float | None:
        return self._deadline

    @property
    def current_entry(self) -> EntrySnapshot | None:
        if not self.entries:
            return None
        return self.entries[self.current_index]

    def tick(self, now: float) -> bool:
        """Advance past every expired entry timer; True if the entry changed."""
        if self.mode is not Mode.LOCAL or self._deadline is None:
            return False
        changed = False
        while now >= self._deadline:
            self.current_index = (self.current_index + 1) % len(self.entries)
            self._deadline += self._durations[self.current_index]
            changed = True
        return changed

    def apply_clock(self, elapsed_ms: float) -> bool:
        if self.mode is not Mode.CLOCK_LOCKED or not self.entries:
            return False
        target = clock_locked_index(self._durations, elapsed_ms)
        if target == self.current_index:
            return False
        self.current_index = target
        return True
