"""Headless player process.

Three activities run side by side: a periodic config refetch, the server
event stream, and (only for clock-bound screens) a fast clock status poll.
Every stream event ends in "refetch config and restart the sequence", which is
safe to repeat, so the activities need no coordination beyond the lock around
the sequencer.
"""
import json
import logging
import os
import threading
import time
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any

import requests

from signage.player.models import EntrySnapshot, ScreenConfig
from signage.player.sequencer import Mode, PlaybackSequencer

logger = logging.getLogger(__name__)

REFRESH_SEC = float(os.getenv("SIGNAGE_PLAYER_REFRESH_SEC", "30"))
CLOCK_POLL_MS = float(os.getenv("SIGNAGE_PLAYER_CLOCK_POLL_MS", "100"))
REQUEST_TIMEOUT_SEC = float(os.getenv("SIGNAGE_PLAYER_REQUEST_TIMEOUT_SEC", "10"))
STREAM_RETRY_MAX_SEC = 30.0


class DisplayState(str, Enum):
    LOADING = "LOADING"
    PLAYING = "PLAYING"
    IDLE = "IDLE"
    NOT_FOUND = "NOT_FOUND"
    ERROR = "ERROR"


def iter_sse_events(lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """Decode `data:` frames of a text/event-stream; comments are skipped."""
    buffer: list[str] = []
    for line in lines:
        if line is None:
            continue
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        line = line.rstrip("\r")
        if not line:
            if buffer:
                raw = "\n".join(buffer)
                buffer = []
                try:
                    event = json.loads(raw)
                except ValueError:
                    logger.debug("Ignoring non-JSON event: %r", raw)
                    continue
                if isinstance(event, dict):
                    yield event
            continue
        if line.startswith(":"):
            continue
        if line.startswith("data:"):
            buffer.append(line[5:].lstrip(" "))


class LoggingRenderer:
    def show(self, state: DisplayState, config: ScreenConfig | None, entry: EntrySnapshot | None) -> None:
        if state is DisplayState.NOT_FOUND:
            logger.warning("Screen Not Found")
        elif state is DisplayState.ERROR:
            logger.error("Player error: configuration unavailable")
        elif state is DisplayState.IDLE:
            logger.info("%s: No Content Assigned", config.name if config else "?")
        elif state is DisplayState.PLAYING and entry is not None:
            if entry.content.malformed:
                logger.info("Now showing: nothing (entry %s has malformed content)", entry.id)
            else:
                logger.info("Now showing: %s (%s)", entry.content.name, entry.content.type)


class PlayerClient:
    def __init__(
        self,
        server_url: str,
        screen_id: str,
        renderer=None,
        session: requests.Session | None = None,
        refresh_sec: float = REFRESH_SEC,
        clock_poll_ms: float = CLOCK_POLL_MS,
        timeout: float = REQUEST_TIMEOUT_SEC,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.screen_id = screen_id
        self.renderer = renderer or LoggingRenderer()
        self.session = session if session is not None else requests.Session()
        self.refresh_sec = refresh_sec
        self.clock_poll_sec = clock_poll_ms / 1000.0
        self.timeout = timeout
        self.state = DisplayState.LOADING
        self.sequencer = PlaybackSequencer(None, time.monotonic())
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._wake = threading.Event()
        self._threads: list[threading.Thread] = []
        self._stream_response = None

    @property
    def config_url(self) -> str:
        return f"{self.server_url}/player/screens/{self.screen_id}/config"

    @property
    def stream_url(self) -> str:
        return f"{self.server_url}/player/screens/{self.screen_id}/stream"

    def _render(self) -> None:
        with self._lock:
            state = self.state
            config = self.sequencer.config
            entry = self.sequencer.current_entry
        self.renderer.show(state, config, entry)

    def fetch_config(self) -> ScreenConfig | None:
        try:
            resp = self.session.get(self.config_url, timeout=self.timeout)
            if resp.status_code == 404:
                with self._lock:
                    self.state = DisplayState.NOT_FOUND
                    self.sequencer.load(None, time.monotonic())
                self._render()
                return None
            resp.raise_for_status()
            config = ScreenConfig.from_payload(resp.json())
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            logger.warning("Config fetch failed for screen %s: %s", self.screen_id, exc)
            with self._lock:
                # Keep playing the last good snapshot through transient failures.
                if self.sequencer.config is None:
                    self.state = DisplayState.ERROR
            self._render()
            return None

        with self._lock:
            self.sequencer.load(config, time.monotonic())
            self.state = DisplayState.IDLE if self.sequencer.idle else DisplayState.PLAYING
        self._wake.set()
        self._render()
        return config

    def handle_event(self, event: dict[str, Any]) -> None:
        logger.info("Event %s for screen %s", event.get("type"), self.screen_id)
        self.fetch_config()

    def poll_clock(self) -> bool:
        with self._lock:
            config = self.sequencer.config
            mode = self.sequencer.mode
        if config is None or mode is not Mode.CLOCK_LOCKED or not config.timecode_id:
            return False
        try:
            resp = self.session.get(
                f"{self.server_url}/timecodes/{config.timecode_id}/status",
                timeout=self.timeout,
            )
            resp.raise_for_status()
            elapsed = float(resp.json().get("elapsedMs", 0))
        except (requests.RequestException, ValueError) as exc:
            logger.debug("Clock poll failed: %s", exc)
            return False
        with self._lock:
            # A config swap may have happened while the request was in flight.
            if self.sequencer.config is not config:
                return False
            changed = self.sequencer.apply_clock(elapsed)
        if changed:
            self._render()
        return changed

    def _refresh_loop(self) -> None:
        while not self._stop.wait(self.refresh_sec):
            self.fetch_config()

    def _clock_loop(self) -> None:
        while not self._stop.wait(self.clock_poll_sec):
            self.poll_clock()

    def _stream_loop(self) -> None:
        backoff = 1.0
        while not self._stop.is_set():
            try:
                with self.session.get(self.stream_url, stream=True, timeout=(self.timeout, None)) as resp:
                    self._stream_response = resp
                    if self._stop.is_set():
                        return
                    resp.raise_for_status()
                    backoff = 1.0
                    logger.info("Event stream connected for screen %s", self.screen_id)
                    for event in iter_sse_events(resp.iter_lines(decode_unicode=True)):
                        if self._stop.is_set():
                            return
                        self.handle_event(event)
            except requests.RequestException as exc:
                if self._stop.is_set():
                    return
                logger.warning("Event stream dropped: %s; retrying in %.0fs", exc, backoff)
            except (AttributeError, ValueError, OSError):
                # stop() closing the response mid-read surfaces as a low-level read error.
                if self._stop.is_set():
                    return
                raise
            finally:
                self._stream_response = None
            if self._stop.wait(backoff):
                return
            backoff = min(backoff * 2, STREAM_RETRY_MAX_SEC)

    def _sequence_loop(self) -> None:
        while not self._stop.is_set():
            with self._lock:
                changed = self.sequencer.tick(time.monotonic())
                deadline = self.sequencer.next_deadline
            if changed:
                self._render()
            timeout = 1.0 if deadline is None else max(0.0, deadline - time.monotonic())
            self._wake.wait(timeout)
            self._wake.clear()

    def start_background(self) -> None:
        for target, name in (
            (self._refresh_loop, "config-refresh"),
            (self._stream_loop, "event-stream"),
            (self._clock_loop, "clock-poll"),
        ):
            thread = threading.Thread(target=target, name=f"player-{name}", daemon=True)
            thread.start()
            self._threads.append(thread)

    def run(self) -> None:
        self.fetch_config()
        self.start_background()
        try:
            self._sequence_loop()
        finally:
            self.stop()

    def stop(self, join_timeout: float = 2.0) -> None:
        self._stop.set()
        self._wake.set()
        # The stream read has no timeout; closing the response unblocks it.
        response = self._stream_response
        if response is not None:
            response.close()
        current = threading.current_thread()
        for thread in self._threads:
            if thread is not current:
                thread.join(join_timeout)
        alive = [thread.name for thread in self._threads if thread.is_alive()]
        if alive:
            logger.warning("Player threads still running after stop: %s", ", ".join(alive))
