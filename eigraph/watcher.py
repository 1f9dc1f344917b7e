"""
Payload file watcher.

Watchdog observes the payload's directory; changes to the payload file are
debounced (editors and exporters often write in several steps) and then
handed to a callback, typically a re-render.
"""

from __future__ import annotations

import hashlib
import logging
import time
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


def file_digest(path: Path) -> str | None:
    try:
        return hashlib.sha256(path.read_bytes()).hexdigest()
    except OSError:
        return None


class PayloadEventHandler(FileSystemEventHandler):
    """Marks the payload dirty on create/modify/move-into; `flush_pending` fires the callback.

    Rewrites with identical content do not fire.
    """

    DEBOUNCE_SECONDS = 0.5

    def __init__(self, payload_path: Path, on_change: Callable[[Path], None], *, debounce: float | None = None) -> None:
        super().__init__()
        self.payload_path = payload_path.resolve()
        self.on_change = on_change
        self.debounce = self.DEBOUNCE_SECONDS if debounce is None else debounce
        self.pending_since: float | None = None
        self.last_digest = file_digest(self.payload_path)

    def _is_payload(self, path: str | bytes) -> bool:
        if isinstance(path, bytes):
            path = path.decode()
        return Path(path).resolve() == self.payload_path

    def _touch(self) -> None:
        self.pending_since = time.monotonic()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_payload(event.src_path):
            self._touch()

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_payload(event.src_path):
            self._touch()

    def on_moved(self, event: FileSystemEvent) -> None:
        # atomic save: temp file renamed over the payload
        if not event.is_directory and self._is_payload(event.dest_path):
            self._touch()

    def flush_pending(self, now: float | None = None) -> bool:
        """Fire the callback if the debounce window has passed; returns whether it fired."""
        if self.pending_since is None:
            return False
        now = time.monotonic() if now is None else now
        if now - self.pending_since < self.debounce:
            return False
        self.pending_since = None

        digest = file_digest(self.payload_path)
        if digest is None or digest == self.last_digest:
            return False
        self.last_digest = digest
        self.on_change(self.payload_path)
        return True


def watch_payload(
    payload_path: Path,
    on_change: Callable[[Path], None],
    *,
    debounce: float | None = None,
) -> tuple[Observer, PayloadEventHandler]:
    """Start watching; the caller stops the returned observer."""
    handler = PayloadEventHandler(payload_path, on_change, debounce=debounce)
    observer = Observer()
    observer.schedule(handler, str(handler.payload_path.parent), recursive=False)
    observer.start()
    return observer, handler


def run_watch_loop(
    payload_path: Path,
    on_change: Callable[[Path], None],
    *,
    debounce: float | None = None,
    poll_interval: float = 0.25,
) -> None:
    """Block until interrupted, flushing debounced changes."""
    observer, handler = watch_payload(payload_path, on_change, debounce=debounce)
    logger.debug("Watching %s", handler.payload_path)
    try:
        while True:
            time.sleep(poll_interval)
            handler.flush_pending()
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
