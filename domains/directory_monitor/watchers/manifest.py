"""
Manifest write watcher.

Used by refresh to notice when the one-shot generator has written the
manifest, instead of always sleeping for the full wait interval. The wait
is still bounded by the same worst-case interval.
"""

import os
import threading
import time
from pathlib import Path

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer


def _real(path) -> str:
    return os.path.realpath(os.fsdecode(path))


class ManifestWriteHandler(FileSystemEventHandler):
    """Watchdog handler that records writes to one manifest file."""

    def __init__(self, manifest: Path):
        super().__init__()
        self.manifest = _real(manifest)
        self.written = threading.Event()
        self.last_write = 0.0
        self._lock = threading.Lock()

    def _record(self, raw_path) -> None:
        if not raw_path or _real(raw_path) != self.manifest:
            return

        with self._lock:
            self.last_write = time.monotonic()
        self.written.set()

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._record(event.src_path)

    def on_closed(self, event: FileSystemEvent) -> None:
        self._record(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Generators that write a temp file and rename it land here.
        self._record(getattr(event, "dest_path", None))

    def quiet_for(self) -> float:
        """Seconds since the last recorded write."""
        with self._lock:
            return time.monotonic() - self.last_write


class ManifestWaiter:
    """
    Context manager watching a directory for manifest writes.

    Usage:
        with ManifestWaiter(path, quiet_seconds=0.5) as waiter:
            spawn_generator()
            written = waiter.wait(timeout=5.0)
    """

    def __init__(self, manifest: Path, quiet_seconds: float = 0.5):
        self.manifest = manifest
        self.quiet_seconds = quiet_seconds
        self.handler = ManifestWriteHandler(manifest)
        self.observer = Observer()
        self.observer.daemon = True

    def __enter__(self) -> "ManifestWaiter":
        self.observer.schedule(self.handler, str(self.manifest.parent), recursive=False)
        self.observer.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.observer.stop()
        self.observer.join()

    def wait(self, timeout: float) -> bool:
        """
        Block until the manifest was written and stayed quiet, or timeout.

        Returns:
            True if a write was observed within the timeout
        """
        deadline = time.monotonic() + timeout

        if not self.handler.written.wait(timeout):
            logger.debug(f"No write to {self.manifest} within {timeout}s")
            return False

        while True:
            remaining = deadline - time.monotonic()
            quiet_left = self.quiet_seconds - self.handler.quiet_for()
            if remaining <= 0 or quiet_left <= 0:
                return True
            time.sleep(min(remaining, quiet_left))
