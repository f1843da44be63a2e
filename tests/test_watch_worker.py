"""Tests for watch worker module."""

import os
import threading
import time

from typr_workspace import watch_worker
from typr_workspace.models import ChangeKind
from typr_workspace.watch_worker import WatchWorker, WorkerState, observe


def _touch(path, content="x", offset_s=10):
    """Write content and push the mtime clearly past its previous value."""
    path.write_text(content, encoding="utf-8")
    st = os.stat(path)
    bumped = st.st_mtime_ns + offset_s * 1_000_000_000
    os.utime(path, ns=(bumped, bumped))


def _worker(path, events, cancel=None, interval=0.02):
    return WatchWorker(str(path), cancel or threading.Event(), events.append, interval)


class TestObserve:
    """Tests for observe function."""

    def test_existing_file(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")

        exists, mtime_ns = observe(str(target))

        assert exists is True
        assert mtime_ns == os.stat(target).st_mtime_ns

    def test_missing_file(self, tmp_path):
        assert observe(str(tmp_path / "missing.md")) == (False, None)

    def test_invalid_path_counts_as_missing(self):
        assert observe("bad\0path") == (False, None)

    def test_stat_error_counts_as_missing(self, tmp_path, monkeypatch):
        target = tmp_path / "a.md"
        target.write_text("x")

        def failing_stat(path):
            raise PermissionError("flaky mount")

        monkeypatch.setattr(watch_worker.os, "stat", failing_stat)

        assert observe(str(target)) == (False, None)


class TestWatchWorkerTick:
    """Tests for the per-tick transition logic."""

    def test_seeding_emits_nothing(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")
        events = []

        worker = _worker(target, events)

        assert worker.last_existed is True
        assert worker.last_modified_ns == os.stat(target).st_mtime_ns
        assert worker.tick() is None
        assert events == []

    def test_modification_emits_once(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")
        events = []
        worker = _worker(target, events)

        _touch(target, "changed")
        first = worker.tick()
        second = worker.tick()

        assert first is not None
        assert first.kind is ChangeKind.MODIFIED
        assert first.path == str(target)
        assert second is None
        assert [e.kind for e in events] == [ChangeKind.MODIFIED]

    def test_removal_emits_once(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")
        events = []
        worker = _worker(target, events)

        target.unlink()
        worker.tick()
        worker.tick()

        assert [e.kind for e in events] == [ChangeKind.REMOVED]
        assert worker.last_existed is False
        assert worker.last_modified_ns is None

    def test_recreation_is_silent_until_modified(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")
        events = []
        worker = _worker(target, events)

        target.unlink()
        worker.tick()
        target.write_text("back")
        assert worker.tick() is None

        _touch(target, "edited")
        worker.tick()

        assert [e.kind for e in events] == [ChangeKind.REMOVED, ChangeKind.MODIFIED]

    def test_missing_at_seed_then_appears(self, tmp_path):
        target = tmp_path / "later.md"
        events = []
        worker = _worker(target, events)

        assert worker.last_existed is False
        target.write_text("hello")

        assert worker.tick() is None
        assert worker.last_existed is True
        assert events == []

    def test_sink_failure_is_swallowed(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")

        def broken_sink(event):
            raise RuntimeError("ui went away")

        worker = WatchWorker(str(target), threading.Event(), broken_sink, 0.02)
        _touch(target, "changed")

        event = worker.tick()

        assert event is not None
        assert worker.last_modified_ns == os.stat(target).st_mtime_ns
        assert worker.tick() is None

    def test_cancelled_worker_emits_nothing(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")
        events = []
        cancel = threading.Event()
        worker = _worker(target, events, cancel)

        cancel.set()
        target.unlink()

        assert worker.tick() is None
        assert events == []


class TestWatchWorkerThread:
    """Tests for the background loop."""

    def test_thread_is_daemon_and_named(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")

        worker = _worker(target, [])

        assert worker.daemon is True
        assert worker.name == f"watch:{target}"
        assert worker.state is WorkerState.ACTIVE

    def test_exits_after_cancel(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")
        cancel = threading.Event()
        worker = _worker(target, [], cancel, interval=0.05)

        worker.start()
        time.sleep(0.1)
        cancel.set()
        worker.join(timeout=1.0)

        assert not worker.is_alive()
        assert worker.state is WorkerState.STOPPED

    def test_already_cancelled_exits_without_events(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")
        events = []
        cancel = threading.Event()
        cancel.set()
        worker = _worker(target, events, cancel)
        target.unlink()

        worker.start()
        worker.join(timeout=1.0)

        assert not worker.is_alive()
        assert events == []

    def test_detects_modification_in_background(self, tmp_path):
        target = tmp_path / "a.md"
        target.write_text("x")
        events = []
        lock = threading.Lock()

        def sink(event):
            with lock:
                events.append(event)

        cancel = threading.Event()
        worker = WatchWorker(str(target), cancel, sink, 0.02)
        worker.start()

        time.sleep(0.1)
        _touch(target, "changed")
        time.sleep(0.2)

        cancel.set()
        worker.join(timeout=1.0)

        with lock:
            kinds = [e.kind for e in events]
        assert kinds == [ChangeKind.MODIFIED]
