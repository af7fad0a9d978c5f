"""Local package watchers — keep node_modules copies in sync with packages/.

Each local package gets its own PackageWatcher: one watchdog Observer
thread bound to a single (source, destination) pair. Watchers share no
copy state, so changes in different packages are handled independently;
the only shared object is the ``failed`` event a watcher sets when a
re-copy fails.

Any file add / delete / modify under the source tree prints a one-line
notice and re-copies the whole package (no incremental sync).

Key entities:
  - copy_package(): replace a destination tree with a fresh copy.
  - PackageWatcher: start/stop wrapper around one Observer.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# Notice letters, same order as the events they report
ADDED = "A"
DELETED = "D"
MODIFIED = "M"


def copy_package(source: Path, destination: Path) -> None:
    """Replace destination with a full copy of source.

    The old tree is removed first, so files deleted from source don't
    linger in the copy.
    """
    if destination.is_symlink() or destination.is_file():
        destination.unlink()
    elif destination.exists():
        shutil.rmtree(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source, destination, symlinks=True)
    logger.debug("Copied %s -> %s", source, destination)


class _ChangeHandler(FileSystemEventHandler):
    """Translates watchdog events into A/D/M changes for one watcher."""

    def __init__(self, watcher: PackageWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.handle_change(ADDED, os.fsdecode(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.handle_change(DELETED, os.fsdecode(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.handle_change(MODIFIED, os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        # A rename is an unlink of the old path plus an add of the new one
        self._watcher.handle_change(DELETED, os.fsdecode(event.src_path))
        self._watcher.handle_change(ADDED, os.fsdecode(event.dest_path))


class PackageWatcher:
    """Watches packages/<name> and mirrors it into node_modules/<name>."""

    def __init__(
        self,
        name: str,
        source: Path,
        destination: Path,
        ignored_dirs: tuple[str, ...] = ("node_modules",),
        marker: str = "ℹ",
        copy: Callable[[Path, Path], None] = copy_package,
        failed: threading.Event | None = None,
    ) -> None:
        self.name = name
        self.source = source
        self.destination = destination
        self.ignored_dirs = frozenset(ignored_dirs)
        self.marker = marker
        self._copy = copy
        self._observer: Observer | None = None
        # Set (and shared with the preparer) once a re-copy fails
        self.failed = failed if failed is not None else threading.Event()
        self.error: BaseException | None = None

    @property
    def is_alive(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def is_ignored(self, path: str) -> bool:
        """Check if path sits inside an ignored directory (e.g. node_modules)."""
        try:
            parts = Path(path).relative_to(self.source).parts
        except ValueError:
            parts = Path(path).parts
        return any(part in self.ignored_dirs for part in parts)

    def sync(self) -> None:
        """Copy the whole package into its destination."""
        self._copy(self.source, self.destination)

    def handle_change(self, kind: str, path: str) -> None:
        """Report one change and re-copy the package.

        Runs on the observer thread. A failed copy is fatal for the
        session: the error is kept on the watcher and ``failed`` is set so
        the main thread can stop the foreground command and re-raise it.
        Later changes are ignored.
        """
        if self.error is not None or self.is_ignored(path):
            return
        print(f"{self.marker} {kind} {path}", flush=True)
        try:
            self.sync()
        except OSError as e:
            logger.error("Failed to re-copy %s after change to %s: %s", self.name, path, e)
            self.error = e
            self.failed.set()

    def start(self) -> None:
        """Start watching. The initial directory contents are not reported."""
        if self._observer is not None:
            return
        observer = Observer()
        observer.daemon = True
        observer.schedule(_ChangeHandler(self), str(self.source), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching %s", self.source)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the observer thread and wait for it to exit."""
        observer = self._observer
        if observer is None:
            return
        self._observer = None
        observer.stop()
        observer.join(timeout)
        logger.debug("Stopped watching %s", self.source)
