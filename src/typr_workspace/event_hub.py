"""Fan-out of change events from watch workers to UI subscribers."""

import logging
import queue
import threading
from typing import Callable, List

from .models import ChangeEvent

logger = logging.getLogger(__name__)


class EventHub:
    """
    Thread-safe event sink shared by all watch workers.

    Each subscriber gets its own bounded queue. Delivery is fire-and-forget:
    a full queue or a failing listener drops the event for that receiver only.
    """

    def __init__(self, max_queue_size: int = 1000):
        self.max_queue_size = max_queue_size
        self._subscribers: List[queue.Queue] = []
        self._listeners: List[Callable[[ChangeEvent], None]] = []
        self._lock = threading.Lock()

    def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every subscriber and listener."""
        with self._lock:
            subscribers = list(self._subscribers)
            listeners = list(self._listeners)

        for q in subscribers:
            try:
                q.put_nowait(event)
            except queue.Full:
                logger.debug(f"Subscriber queue full, dropped {event.kind.value} for {event.path}")

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.debug(f"Listener failed for {event.path}: {e}")

    __call__ = publish

    def subscribe(self) -> queue.Queue:
        """Register a new subscriber queue."""
        q: queue.Queue = queue.Queue(maxsize=self.max_queue_size)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    def add_listener(self, listener: Callable[[ChangeEvent], None]) -> None:
        """Register an in-process callback."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[ChangeEvent], None]) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
