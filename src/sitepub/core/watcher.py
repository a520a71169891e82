"""Directory watcher: calls back once per settled batch of filesystem changes under a root"""

import logging
import os
import queue
from contextlib import suppress
from pathlib import Path
from typing import Callable

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch

from sitepub.core.errors import WatchError


logger = logging.getLogger(__name__)

WATCHED_EVENT_TYPES = {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}
LIVENESS_INTERVAL = 0.5     # seconds between observer health checks while idle


class _EventQueue(FileSystemEventHandler):
    """Hands events from the observer thread over to the watch loop."""

    def __init__(self, events: queue.Queue):
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in WATCHED_EVENT_TYPES:
            self.events.put(event)


class DirectoryWatcher:
    """Watches `root` and every directory below it, including ones created later.

    Each directory gets its own non-recursive watch, tracked in `watches`, so that
    directories appearing mid-loop can be added without restarting the observer.
    """

    def __init__(self, root: Path, settle_delay: float = 0.1, observer_factory: Callable = Observer):
        self.root = Path(os.path.abspath(root))
        self.settle_delay = settle_delay
        self.events: queue.Queue = queue.Queue()
        self.watches: dict[ObservedWatch, Path] = {}
        self._handler = _EventQueue(self.events)
        self._observer = observer_factory()

    def register(self, directory: Path) -> None:
        """Watch directory and, recursively, all of its subdirectories not watched yet."""
        if not directory.is_dir():
            return
        if directory not in self.watches.values():
            try:
                watch = self._observer.schedule(self._handler, str(directory), recursive=False)
            except FileNotFoundError:
                return  # deleted again before we got to it
            except OSError as e:
                raise WatchError(f"Couldn't watch directory {directory}: {e}") from e
            self.watches[watch] = directory
            logger.debug("Watching %s", directory)
        try:
            children = sorted(directory.iterdir())
        except FileNotFoundError:
            return  # deleted again before we got to it
        for child in children:
            if child.is_dir():
                self.register(child)

    def _prune(self) -> None:
        """Drop watches whose directory is gone."""
        for watch, path in list(self.watches.items()):
            if not path.is_dir():
                del self.watches[watch]
                with suppress(KeyError):
                    self._observer.unschedule(watch)

    def start(self) -> None:
        if not self.root.is_dir():
            raise WatchError(f"Watching directory {self.root} for changes failed: not a directory")
        self.register(self.root)
        try:
            self._observer.start()
        except OSError as e:
            raise WatchError(f"Watching directory {self.root} for changes failed: {e}") from e

    def stop(self) -> None:
        self._observer.stop()
        if self._observer.is_alive():
            self._observer.join()

    def _next_event(self) -> FileSystemEvent:
        while True:
            try:
                return self.events.get(timeout=LIVENESS_INTERVAL)
            except queue.Empty:
                if not self._observer.is_alive():
                    raise WatchError(f"Watching directory {self.root} for changes failed: observer stopped")

    def next_batch(self) -> list[FileSystemEvent]:
        """Block until events arrive, then collect more until none show up for `settle_delay`."""
        batch = [self._next_event()]
        while True:
            try:
                batch.append(self.events.get(timeout=self.settle_delay))
            except queue.Empty:
                return batch

    def handle(self, batch: list[FileSystemEvent]) -> None:
        """Update the watch registrations for the directories a batch created, moved or deleted."""
        self._prune()
        for event in batch:
            for p in (event.src_path, getattr(event, "dest_path", "")):
                if p:
                    self.register(Path(os.fsdecode(p)))

    def watch(self, on_change: Callable[[], None]) -> None:
        """Call on_change once per batch of changes. Blocks until on_change or the watch raises."""
        try:
            self.start()
            while True:
                batch = self.next_batch()
                self.handle(batch)
                logger.info("Detected %d change(s) under %s", len(batch), self.root)
                on_change()
        finally:
            self.stop()


def watch(root: Path, on_change: Callable[[], None], settle_delay: float = 0.1) -> None:
    """Block forever, calling on_change after every batch of changes below root."""
    DirectoryWatcher(root, settle_delay).watch(on_change)
