"""Polling worker that reports external changes to one watched path."""

import logging
import os
import threading
from enum import Enum
from typing import Callable, Optional, Tuple

from .models import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

EventSink = Callable[[ChangeEvent], None]


class WorkerState(Enum):
    """Lifecycle of a watch worker."""
    ACTIVE = "active"
    STOPPED = "stopped"


def observe(path: str) -> Tuple[bool, Optional[int]]:
    """
    Stat ``path`` once.

    Returns:
        ``(exists, mtime_ns)``. Any stat failure counts as absence.
    """
    try:
        st = os.stat(path)
    except (OSError, ValueError):
        return False, None
    return True, st.st_mtime_ns


class WatchWorker(threading.Thread):
    """
    Polls one path and emits MODIFIED/REMOVED events until cancelled.

    The worker remembers whether the path existed and its modification time
    at the previous tick. Those are seeded when the worker is constructed,
    without emitting anything, so the first tick only reports real changes.
    A REMOVED event needs the path to have existed before; a MODIFIED event
    needs it to have existed before with a different modification time.
    Reappearing after removal is silent until the next modification.
    """

    def __init__(
        self,
        path: str,
        cancel: threading.Event,
        sink: EventSink,
        interval: float = 0.4,
    ):
        """
        Initialize the worker and seed its memory from the path's current state.

        Args:
            path: Path to watch, as registered
            cancel: Shared one-way cancellation flag
            sink: Receives emitted events; failures are ignored
            interval: Seconds between ticks
        """
        super().__init__(name=f"watch:{path}", daemon=True)
        self.path = path
        self.cancel = cancel
        self.sink = sink
        self.interval = interval
        self.last_existed, self.last_modified_ns = observe(path)
        self._state = WorkerState.ACTIVE

    @property
    def state(self) -> WorkerState:
        return self._state

    def _emit(self, kind: ChangeKind) -> Optional[ChangeEvent]:
        # stop() may land mid-tick; nothing leaves a cancelled worker
        if self.cancel.is_set():
            return None
        event = ChangeEvent(path=self.path, kind=kind)
        try:
            self.sink(event)
        except Exception as e:
            logger.debug(f"Dropped {kind.value} event for {self.path}: {e}")
        return event

    def tick(self) -> Optional[ChangeEvent]:
        """
        Run one poll step.

        Returns:
            The emitted event, or None if nothing changed
        """
        exists, modified_ns = observe(self.path)
        event = None

        if not exists:
            if self.last_existed:
                event = self._emit(ChangeKind.REMOVED)
            self.last_existed = False
            self.last_modified_ns = None
            return event

        if self.last_existed and modified_ns != self.last_modified_ns:
            event = self._emit(ChangeKind.MODIFIED)

        self.last_existed = True
        self.last_modified_ns = modified_ns
        return event

    def run(self) -> None:
        logger.debug(f"Watch worker started for {self.path}")
        try:
            while not self.cancel.is_set():
                event = self.tick()
                if event is not None:
                    logger.debug(f"{event.kind.value}: {self.path}")
                self.cancel.wait(self.interval)
        finally:
            self._state = WorkerState.STOPPED
            logger.debug(f"Watch worker stopped for {self.path}")
