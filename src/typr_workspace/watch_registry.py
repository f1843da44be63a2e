"""Thread-safe registry of active file watches."""

import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional

from .exceptions import InvalidPathError, LockFailureError, NotFoundError
from .watch_worker import EventSink, WatchWorker

logger = logging.getLogger(__name__)


@dataclass
class _WatchEntry:
    cancel: threading.Event
    worker: WatchWorker


class WatchRegistry:
    """
    Maps each watched path to the cancellation flag of its single worker.

    Membership is the authoritative "is this path watched" answer. The lock
    only guards the map itself; stat calls, sleeps and event emission all
    happen in the workers, outside of it. One registry is built per
    application and handed to whoever needs it.
    """

    def __init__(
        self,
        sink: EventSink,
        poll_interval: float = 0.4,
        lock_timeout: float = 5.0,
    ):
        """
        Initialize the registry.

        Args:
            sink: Callback receiving change events from every worker
            poll_interval: Seconds between two ticks of a worker
            lock_timeout: Maximum seconds to wait for the registry lock
        """
        self.sink = sink
        self.poll_interval = poll_interval
        self.lock_timeout = lock_timeout
        self._watches: Dict[str, _WatchEntry] = {}
        self._retired: List[WatchWorker] = []
        self._lock = threading.Lock()

    def _retire(self, worker: WatchWorker) -> None:
        # ident stays None until start() runs, which may still be pending
        self._retired = [w for w in self._retired if w.is_alive() or w.ident is None]
        self._retired.append(worker)

    @contextmanager
    def _locked(self):
        if not self._lock.acquire(timeout=self.lock_timeout):
            raise LockFailureError("Failed to lock watcher registry")
        try:
            yield
        finally:
            self._lock.release()

    def start(self, path: str) -> bool:
        """
        Start watching a path.

        Args:
            path: Path of the file to watch

        Returns:
            True if a worker was spawned, False if the path was already watched

        Raises:
            InvalidPathError: If the path is empty
            NotFoundError: If the path does not exist
            LockFailureError: If the registry lock cannot be acquired
        """
        if not path:
            raise InvalidPathError("Path is required")
        if not os.path.exists(path):
            raise NotFoundError(f"File does not exist: {path}")

        # Seeding stats the path; keep it outside the lock
        cancel = threading.Event()
        worker = WatchWorker(path, cancel, self.sink, self.poll_interval)

        with self._locked():
            if path in self._watches:
                return False
            self._watches[path] = _WatchEntry(cancel=cancel, worker=worker)

        worker.start()
        logger.info(f"Started watching {path}")
        return True

    def stop(self, path: str) -> bool:
        """
        Stop watching a path without waiting for its worker to exit.

        Returns:
            True if the path was being watched, False otherwise
        """
        with self._locked():
            entry = self._watches.pop(path, None)
            if entry is not None:
                self._retire(entry.worker)

        if entry is None:
            return False
        entry.cancel.set()
        logger.info(f"Stopped watching {path}")
        return True

    def stop_all(self) -> int:
        """
        Cancel every watch.

        Returns:
            Number of watches stopped
        """
        with self._locked():
            drained = list(self._watches.values())
            self._watches.clear()
            for entry in drained:
                self._retire(entry.worker)

        for entry in drained:
            entry.cancel.set()
        if drained:
            logger.info(f"Stopped {len(drained)} watch(es)")
        return len(drained)

    def join_all(self, timeout: Optional[float] = None) -> None:
        """Wait for cancelled workers to finish their last tick."""
        with self._locked():
            retired, self._retired = self._retired, []
        for worker in retired:
            if worker.ident is not None:
                worker.join(timeout=timeout)

    def is_watching(self, path: str) -> bool:
        """Check if a path is being watched."""
        with self._locked():
            return path in self._watches

    def watched_paths(self) -> List[str]:
        """Get the currently watched paths, sorted."""
        with self._locked():
            return sorted(self._watches)

    def worker_for(self, path: str) -> Optional[WatchWorker]:
        """Get the live worker bound to a path, if any."""
        with self._locked():
            entry = self._watches.get(path)
            return entry.worker if entry is not None else None

    def __len__(self) -> int:
        """Return the number of active watches."""
        with self._locked():
            return len(self._watches)

    def __contains__(self, path: str) -> bool:
        return self.is_watching(path)
