"""Polling directory watcher with write-completion debouncing.

A file is reported only after its size and modification time have stayed
the same for ``stability_polls`` consecutive polls, so writers that are
still streaming a file never trigger a partial read.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)


class FileEventType(str, Enum):
    ADDED = "add"
    CHANGED = "change"


@dataclass(frozen=True)
class FileEvent:
    """A settled file that is new or changed since it was last reported."""

    type: FileEventType
    path: Path


FileCallback = Callable[[FileEvent], Union[Awaitable[Any], Any]]

# (st_mtime_ns, st_size)
Signature = tuple[int, int]


class PollingFileWatcher:
    """Watch a directory for settled files matching a glob pattern.

    Args:
        directory: Directory to scan (created on start if missing)
        callback: Called with each FileEvent; may be a coroutine function
        pattern: Glob pattern for files of interest
        poll_interval: Seconds between scans in ``run``
        stability_polls: Consecutive unchanged scans before a file settles
        ignore_initial: Do not report files already present at start
    """

    def __init__(
        self,
        directory: Path,
        callback: FileCallback,
        pattern: str = "*.json",
        poll_interval: float = 1.0,
        stability_polls: int = 2,
        ignore_initial: bool = True,
    ):
        self.directory = Path(directory)
        self.callback = callback
        self.pattern = pattern
        self.poll_interval = poll_interval
        self.stability_polls = max(1, stability_polls)
        self.ignore_initial = ignore_initial

        # path -> (signature, consecutive unchanged scans)
        self._pending: dict[Path, tuple[Signature, int]] = {}
        # path -> signature last reported
        self._emitted: dict[Path, Signature] = {}
        self._started = False

    def _scan(self) -> dict[Path, Signature]:
        found: dict[Path, Signature] = {}
        try:
            candidates = list(self.directory.glob(self.pattern))
        except OSError as e:
            logger.error(f"Cannot scan {self.directory}: {e}")
            return found

        for path in candidates:
            try:
                stats = path.stat()
            except OSError:
                # Removed between glob and stat
                continue
            if path.is_file():
                found[path] = (stats.st_mtime_ns, stats.st_size)
        return found

    def start(self) -> None:
        """Create the directory and take the initial snapshot."""
        self.directory.mkdir(parents=True, exist_ok=True)
        if self.ignore_initial:
            self._emitted = self._scan()
        self._started = True
        logger.info(f"Watching {self.directory} for {self.pattern}")

    def _settle(self, snapshot: dict[Path, Signature]) -> list[FileEvent]:
        events: list[FileEvent] = []

        for path in list(self._pending):
            if path not in snapshot:
                del self._pending[path]
        for path in list(self._emitted):
            if path not in snapshot:
                del self._emitted[path]

        for path, signature in sorted(snapshot.items()):
            if self._emitted.get(path) == signature:
                self._pending.pop(path, None)
                continue

            previous = self._pending.get(path)
            unchanged = previous[1] + 1 if previous and previous[0] == signature else 0
            if unchanged + 1 < self.stability_polls:
                self._pending[path] = (signature, unchanged)
                continue

            event_type = FileEventType.CHANGED if path in self._emitted else FileEventType.ADDED
            self._pending.pop(path, None)
            self._emitted[path] = signature
            events.append(FileEvent(type=event_type, path=path))

        return events

    async def poll_once(self) -> list[FileEvent]:
        """Scan once and dispatch every file that settled on this scan.

        Callback failures are logged and do not stop other events.
        """
        if not self._started:
            self.start()

        events = self._settle(self._scan())
        for event in events:
            logger.debug(f"File {event.type.value}: {event.path}")
            try:
                result = self.callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Error handling {event.type.value} for {event.path}: {e}")
        return events

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Poll until ``stop_event`` is set (or forever)."""
        if not self._started:
            self.start()

        while stop_event is None or not stop_event.is_set():
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Error in poll loop: {e}")

            if stop_event is None:
                await asyncio.sleep(self.poll_interval)
                continue
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

        logger.info(f"Stopped watching {self.directory}")
