"""Unit tests for core/watcher.py, driven by an in-memory observer"""

import pytest
from watchdog.events import DirCreatedEvent, FileClosedEvent, FileCreatedEvent, FileModifiedEvent

from sitepub.core.errors import WatchError
from sitepub.core.watcher import DirectoryWatcher, watch


class FakeObserver:
    """Records schedule/unschedule calls instead of talking to the OS."""

    def __init__(self):
        self.scheduled = {}
        self.handler = None
        self.alive = False
        self.started = False
        self.stopped = False
        self.schedule_errors = {}
        self.start_error = None

    def schedule(self, handler, path, recursive=False):
        assert recursive is False
        if path in self.schedule_errors:
            raise self.schedule_errors[path]
        self.handler = handler
        watch = object()
        self.scheduled[watch] = path
        return watch

    def unschedule(self, watch):
        del self.scheduled[watch]

    def start(self):
        if self.start_error:
            raise self.start_error
        self.started = self.alive = True

    def stop(self):
        self.stopped = True
        self.alive = False

    def join(self):
        pass

    def is_alive(self):
        return self.alive

    def emit(self, event):
        self.handler.dispatch(event)


class _Stop(Exception):
    pass


@pytest.fixture(name="observer")
def observer_fixture():
    return FakeObserver()


@pytest.fixture(name="watcher")
def watcher_fixture(tmp_path, observer):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "_skip").mkdir()
    (tmp_path / "file.txt").write_text("x")
    return DirectoryWatcher(tmp_path, settle_delay=0.01, observer_factory=lambda: observer)


def test_start_registers_every_directory(watcher, observer, tmp_path):
    """The root and all existing subdirectories get their own watch."""
    watcher.start()
    assert observer.started
    assert set(observer.scheduled.values()) == {
        str(tmp_path), str(tmp_path / "_skip"), str(tmp_path / "a"), str(tmp_path / "a" / "b"),
    }
    assert set(watcher.watches.values()) == {tmp_path, tmp_path / "_skip", tmp_path / "a", tmp_path / "a" / "b"}


def test_start_missing_root(tmp_path, observer):
    """Watching a directory that does not exist is a WatchError."""
    watcher = DirectoryWatcher(tmp_path / "gone", observer_factory=lambda: observer)
    with pytest.raises(WatchError):
        watcher.start()


def test_next_batch_collects_settled_events(watcher, observer, tmp_path):
    """Events that arrive together form one batch; unsupported events are dropped."""
    watcher.start()
    observer.emit(FileCreatedEvent(str(tmp_path / "new.txt")))
    observer.emit(FileClosedEvent(str(tmp_path / "new.txt")))
    observer.emit(FileModifiedEvent(str(tmp_path / "new.txt")))
    batch = watcher.next_batch()
    assert [e.event_type for e in batch] == ["created", "modified"]


def test_handle_registers_new_nested_directories(watcher, observer, tmp_path):
    """A created directory is watched together with directories already nested in it."""
    watcher.start()
    (tmp_path / "posts" / "2024").mkdir(parents=True)
    watcher.handle([DirCreatedEvent(str(tmp_path / "posts"))])
    assert tmp_path / "posts" in watcher.watches.values()
    assert tmp_path / "posts" / "2024" in watcher.watches.values()
    assert str(tmp_path / "posts" / "2024") in observer.scheduled.values()


def test_handle_does_not_register_twice(watcher, observer, tmp_path):
    """Events for an already watched directory do not add a second watch."""
    watcher.start()
    before = len(observer.scheduled)
    watcher.handle([FileModifiedEvent(str(tmp_path / "a"))])
    assert len(observer.scheduled) == before


def test_handle_forgets_deleted_directories(watcher, observer, tmp_path):
    """Watches of directories that disappeared are dropped."""
    watcher.start()
    (tmp_path / "a" / "b").rmdir()
    watcher.handle([])
    assert tmp_path / "a" / "b" not in watcher.watches.values()
    assert str(tmp_path / "a" / "b") not in observer.scheduled.values()


def test_watch_calls_back_once_per_batch(watcher, observer, tmp_path):
    """Several events delivered together trigger a single on_change call."""
    calls = []

    def on_change():
        calls.append(1)
        raise _Stop

    for i in range(3):
        watcher.events.put(FileCreatedEvent(str(tmp_path / f"{i}.txt")))
    with pytest.raises(_Stop):
        watcher.watch(on_change)
    assert calls == [1]
    assert not observer.alive


def test_dead_observer_is_fatal(watcher, observer, monkeypatch):
    """An observer thread that stops while waiting raises WatchError."""
    monkeypatch.setattr("sitepub.core.watcher.LIVENESS_INTERVAL", 0.01)
    watcher.start()
    observer.alive = False
    with pytest.raises(WatchError, match="observer stopped"):
        watcher.next_batch()


def test_handle_skips_directory_removed_before_scheduling(watcher, observer, tmp_path):
    """A directory that vanishes between the event and the schedule call is not fatal."""
    watcher.start()
    (tmp_path / "tmpdir").mkdir()
    observer.schedule_errors[str(tmp_path / "tmpdir")] = FileNotFoundError(2, "No such file or directory")
    watcher.handle([DirCreatedEvent(str(tmp_path / "tmpdir"))])
    assert tmp_path / "tmpdir" not in watcher.watches.values()


def test_handle_schedule_failure_is_fatal(watcher, observer, tmp_path):
    """Other errors while adding a watch, such as hitting the inotify limit, raise WatchError."""
    watcher.start()
    (tmp_path / "posts").mkdir()
    observer.schedule_errors[str(tmp_path / "posts")] = OSError(28, "inotify watch limit reached")
    with pytest.raises(WatchError, match="Couldn't watch directory"):
        watcher.handle([DirCreatedEvent(str(tmp_path / "posts"))])


def test_watch_stops_observer_when_start_fails(watcher, observer):
    """An observer that fails to start is still stopped before the WatchError propagates."""
    observer.start_error = OSError("too many open files")
    with pytest.raises(WatchError):
        watcher.watch(lambda: None)
    assert observer.stopped


def test_module_watch_uses_directory_watcher(tmp_path, monkeypatch):
    """watch() builds a DirectoryWatcher for root with the given settle delay."""
    created = []

    class _RecordingWatcher:
        def __init__(self, root, settle_delay):
            created.append((root, settle_delay))

        def watch(self, on_change):
            on_change()

    calls = []
    monkeypatch.setattr("sitepub.core.watcher.DirectoryWatcher", _RecordingWatcher)
    watch(tmp_path, lambda: calls.append(1), settle_delay=0.3)
    assert created == [(tmp_path, 0.3)]
    assert calls == [1]
