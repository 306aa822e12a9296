"""Records file watcher for continuous sync.

This module provides:
- RecordsFileHandler: Debounces changes to one file and fires a callback
- RecordsWatcher: Watches a records export file using watchdog

Exporters and editors often write a file several times in a row or replace
it through a rename; all of these are coalesced into one callback fired
once the file has been quiet for the sync delay.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import (
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

logger = logging.getLogger(__name__)


def _as_path(value: str | bytes) -> Path:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return Path(value).resolve()


class RecordsFileHandler(FileSystemEventHandler):
    """Event handler that fires a callback after a file stops changing."""

    def __init__(
        self,
        target: Path,
        on_change: Callable[[], None],
        sync_delay_s: float = 1.0,
    ) -> None:
        """Initialize the handler.

        Args:
            target: Absolute path of the watched file.
            on_change: Called (on a timer thread) after changes settle.
            sync_delay_s: Quiet period before on_change is called.
        """
        super().__init__()
        self._target = target
        self._on_change = on_change
        self._sync_delay_s = sync_delay_s
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def _is_target(self, event: FileSystemEvent) -> bool:
        if _as_path(event.src_path) == self._target:
            return True
        if isinstance(event, FileMovedEvent):
            return _as_path(event.dest_path) == self._target
        return False

    def _schedule(self) -> None:
        with self._lock:
            if self._timer:
                self._timer.cancel()
            self._timer = threading.Timer(self._sync_delay_s, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        logger.debug("Records file changed: %s", self._target)
        try:
            self._on_change()
        except Exception:
            logger.exception("Error handling change of %s", self._target)

    def _handle_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or not self._is_target(event):
            return
        self._schedule()

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle created event."""
        if isinstance(event, FileCreatedEvent):
            self._handle_event(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle modified event."""
        if isinstance(event, FileModifiedEvent):
            self._handle_event(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle moved event."""
        self._handle_event(event)

    def stop(self) -> None:
        """Cancel a pending callback."""
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None


class RecordsWatcher:
    """Watches a records file and calls back when it changes.

    Usage:
        with RecordsWatcher(path, on_change=run_sync):
            stop_event.wait()
    """

    def __init__(
        self,
        records_path: Path,
        on_change: Callable[[], None],
        sync_delay_s: float = 1.0,
    ) -> None:
        """Initialize the watcher.

        Args:
            records_path: Records file to watch.
            on_change: Callback fired after the file changes.
            sync_delay_s: Quiet period before the callback.

        Raises:
            ValueError: If the file's directory does not exist.
        """
        self._records_path = Path(records_path).resolve()
        if not self._records_path.parent.is_dir():
            raise ValueError(f"Directory does not exist: {self._records_path.parent}")

        self._handler = RecordsFileHandler(self._records_path, on_change, sync_delay_s)
        self._observer: BaseObserver = Observer()
        self._running = False

    @property
    def records_path(self) -> Path:
        return self._records_path

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start watching for changes."""
        if self._running:
            return
        self._observer.schedule(self._handler, str(self._records_path.parent), recursive=False)
        self._observer.start()
        self._running = True
        logger.info("Watching %s for changes", self._records_path)

    def stop(self) -> None:
        """Stop watching for changes."""
        if not self._running:
            return
        self._handler.stop()
        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._running = False

    def __enter__(self) -> RecordsWatcher:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()
