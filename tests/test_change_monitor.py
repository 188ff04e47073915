"""Tests for the polling change monitor."""

import queue
import shutil
import threading
import time

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from backup_warden.core.change_monitor import (
    ChangeEvent,
    ChangeEventHandler,
    ChangeKind,
    ChangeMonitor,
    file_digest,
)


@pytest.fixture
def events():
    return queue.Queue()


@pytest.fixture
def handler(events, watch_dir):
    h = ChangeEventHandler(events, compare_contents=True)
    h.prime(str(watch_dir))
    return h


def queued(events):
    out = []
    while not events.empty():
        out.append(events.get_nowait())
    return out


def wait_for_event(monitor, kind, timeout=10.0):
    """Pull events until one of the given kind arrives or timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        event = monitor.get_event(timeout=0.2)
        if event is not None and event.kind == kind:
            return event
    return None


class TestChangeEvent:
    @pytest.mark.parametrize("kind", [ChangeKind.CREATED, ChangeKind.MODIFIED, ChangeKind.REMOVED])
    def test_actionable_kinds(self, kind):
        assert ChangeEvent(kind, "/x").actionable

    @pytest.mark.parametrize("kind", [ChangeKind.OTHER, ChangeKind.ERROR])
    def test_non_actionable_kinds(self, kind):
        assert not ChangeEvent(kind, "/x").actionable


class TestChangeEventHandler:
    def test_content_change_reported(self, handler, events, watch_dir):
        path = watch_dir / "notes.txt"
        path.write_text("second draft")
        handler.on_modified(FileModifiedEvent(str(path)))

        [event] = queued(events)
        assert event.kind == ChangeKind.MODIFIED
        assert event.path == str(path)

    def test_metadata_only_change_dropped(self, handler, events, watch_dir):
        handler.on_modified(FileModifiedEvent(str(watch_dir / "notes.txt")))
        assert queued(events) == []

    def test_directory_modification_dropped(self, handler, events, watch_dir):
        handler.on_modified(DirModifiedEvent(str(watch_dir / "docs")))
        assert queued(events) == []

    def test_without_content_comparison_everything_reported(self, events, watch_dir):
        h = ChangeEventHandler(events, compare_contents=False)
        h.on_modified(FileModifiedEvent(str(watch_dir / "notes.txt")))
        h.on_modified(DirModifiedEvent(str(watch_dir / "docs")))

        assert [e.kind for e in queued(events)] == [ChangeKind.MODIFIED, ChangeKind.MODIFIED]

    def test_created_file_is_tracked(self, handler, events, watch_dir):
        path = watch_dir / "fresh.txt"
        path.write_text("hello")
        handler.on_created(FileCreatedEvent(str(path)))
        handler.on_modified(FileModifiedEvent(str(path)))

        assert [e.kind for e in queued(events)] == [ChangeKind.CREATED]

    def test_deleted(self, handler, events, watch_dir):
        path = watch_dir / "notes.txt"
        path.unlink()
        handler.on_deleted(FileDeletedEvent(str(path)))

        [event] = queued(events)
        assert event.kind == ChangeKind.REMOVED

    def test_modified_then_vanished_is_skipped(self, handler, events, watch_dir):
        handler.on_modified(FileModifiedEvent(str(watch_dir / "gone.txt")))
        assert queued(events) == []

    def test_move_reported_as_remove_and_create(self, handler, events, watch_dir):
        src = watch_dir / "notes.txt"
        dest = watch_dir / "renamed.txt"
        src.rename(dest)
        handler.on_moved(FileMovedEvent(str(src), str(dest)))

        kinds = [(e.kind, e.path) for e in queued(events)]
        assert kinds == [(ChangeKind.REMOVED, str(src)), (ChangeKind.CREATED, str(dest))]

    def test_closed_is_other(self, handler, events, watch_dir):
        handler.on_closed(FileClosedEvent(str(watch_dir / "notes.txt")))

        [event] = queued(events)
        assert event.kind == ChangeKind.OTHER
        assert not event.actionable

    def test_unreadable_file_reports_error(self, handler, events, watch_dir, monkeypatch):
        def broken(path, chunk_size=0):
            raise PermissionError("denied")

        monkeypatch.setattr("backup_warden.core.change_monitor.file_digest", broken)
        handler.on_modified(FileModifiedEvent(str(watch_dir / "notes.txt")))

        [event] = queued(events)
        assert event.kind == ChangeKind.ERROR
        assert isinstance(event.error, PermissionError)


class TestFileDigest:
    def test_same_content_same_digest(self, tmp_path):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.write_text("same")
        b.write_text("same")
        assert file_digest(str(a)) == file_digest(str(b))

    def test_different_content(self, tmp_path):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.write_text("one")
        b.write_text("two")
        assert file_digest(str(a)) != file_digest(str(b))


class TestChangeMonitor:
    def test_missing_folder_fails_to_start(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ChangeMonitor(str(tmp_path / "missing")).start()

    def test_file_is_not_a_watch_folder(self, tmp_path):
        f = tmp_path / "file.txt"
        f.write_text("x")
        with pytest.raises(NotADirectoryError):
            ChangeMonitor(str(f)).start()

    def test_get_event_times_out(self, watch_dir):
        monitor = ChangeMonitor(str(watch_dir))
        assert monitor.get_event(timeout=0.01) is None

    def test_drain_returns_everything_queued(self, watch_dir):
        monitor = ChangeMonitor(str(watch_dir))
        monitor.events.put(ChangeEvent(ChangeKind.CREATED, "a"))
        monitor.events.put(ChangeEvent(ChangeKind.REMOVED, "b"))

        assert [e.path for e in monitor.drain()] == ["a", "b"]
        assert monitor.drain() == []

    def test_stop_without_start_is_harmless(self, watch_dir):
        ChangeMonitor(str(watch_dir)).stop()

    def test_polling_detects_new_file(self, watch_dir):
        monitor = ChangeMonitor(str(watch_dir), poll_interval=0.1)
        monitor.start()
        try:
            time.sleep(0.3)
            (watch_dir / "docs" / "added.txt").write_text("new")
            event = wait_for_event(monitor, ChangeKind.CREATED)
        finally:
            monitor.stop()

        assert event is not None
        assert event.path.endswith("added.txt")

    def test_polling_detects_removal(self, watch_dir):
        monitor = ChangeMonitor(str(watch_dir), poll_interval=0.1)
        monitor.start()
        try:
            time.sleep(0.3)
            (watch_dir / "notes.txt").unlink()
            event = wait_for_event(monitor, ChangeKind.REMOVED)
        finally:
            monitor.stop()

        assert event is not None
        assert event.path.endswith("notes.txt")

    def test_get_event_ends_early_on_stop(self, watch_dir):
        monitor = ChangeMonitor(str(watch_dir))
        stop = threading.Event()
        stop.set()

        started = time.monotonic()
        assert monitor.get_event(timeout=30, stop_event=stop) is None
        assert time.monotonic() - started < 5

    def test_get_event_with_stop_event_returns_queued(self, watch_dir):
        monitor = ChangeMonitor(str(watch_dir))
        monitor.events.put(ChangeEvent(ChangeKind.MODIFIED, "a"))

        event = monitor.get_event(timeout=1, stop_event=threading.Event())
        assert event.path == "a"

    def test_get_event_with_stop_event_times_out(self, watch_dir):
        monitor = ChangeMonitor(str(watch_dir))
        assert monitor.get_event(timeout=0.05, stop_event=threading.Event()) is None

    def test_watch_resumes_after_folder_is_recreated(self, watch_dir):
        monitor = ChangeMonitor(str(watch_dir), poll_interval=0.1)
        monitor.start()
        try:
            time.sleep(0.3)
            shutil.rmtree(watch_dir)
            lost = wait_for_event(monitor, ChangeKind.ERROR)

            watch_dir.mkdir()
            rearmed = wait_for_event(monitor, ChangeKind.CREATED)
            time.sleep(0.3)
            (watch_dir / "after.txt").write_text("back again")
            created = wait_for_event(monitor, ChangeKind.CREATED)
        finally:
            monitor.stop()

        assert lost is not None
        assert isinstance(lost.error, FileNotFoundError)
        assert rearmed is not None and rearmed.path == str(watch_dir)
        assert created is not None and created.path.endswith("after.txt")


class FakeEmitter:
    def __init__(self):
        self.alive = True

    def is_alive(self):
        return self.alive


class FakeObserver:
    """Observer double recording schedule calls."""

    def __init__(self, timeout=None):
        self.timeout = timeout
        self.emitters = set()
        self.scheduled = 0
        self.unscheduled = 0

    def schedule(self, handler, path, recursive=False):
        self.scheduled += 1
        self.emitters = {FakeEmitter()}

    def unschedule_all(self):
        self.unscheduled += 1
        self.emitters = set()

    def start(self):
        pass

    def stop(self):
        pass

    def join(self):
        pass


class TestCheckWatch:
    @pytest.fixture
    def monitor(self, watch_dir):
        m = ChangeMonitor(str(watch_dir), observer_factory=FakeObserver)
        m.start()
        return m

    def test_healthy_watch_queues_nothing(self, monitor):
        monitor.check_watch()
        assert monitor.drain() == []
        assert monitor.observer.scheduled == 1

    def test_missing_folder_reported_once(self, monitor, watch_dir):
        shutil.rmtree(watch_dir)
        monitor.check_watch()
        monitor.check_watch()

        [event] = monitor.drain()
        assert event.kind == ChangeKind.ERROR
        assert event.path == str(watch_dir)

    def test_dead_emitter_rescheduled(self, monitor, watch_dir):
        for emitter in monitor.observer.emitters:
            emitter.alive = False

        monitor.check_watch()

        assert [e.kind for e in monitor.drain()] == [ChangeKind.ERROR, ChangeKind.CREATED]
        assert monitor.observer.unscheduled == 1
        assert monitor.observer.scheduled == 2

    def test_recreated_folder_rescheduled(self, monitor, watch_dir):
        shutil.rmtree(watch_dir)
        monitor.check_watch()
        watch_dir.mkdir()
        monitor.check_watch()

        kinds = [e.kind for e in monitor.drain()]
        assert kinds == [ChangeKind.ERROR, ChangeKind.CREATED]
        assert monitor.observer.scheduled == 2

        monitor.check_watch()
        assert monitor.drain() == []

    def test_lost_watch_surfaces_through_get_event(self, monitor, watch_dir):
        shutil.rmtree(watch_dir)
        event = monitor.get_event(timeout=0.01)
        assert event.kind == ChangeKind.ERROR
