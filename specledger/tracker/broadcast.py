"""
Change fan-out to subscribers.

Each subscriber gets its own bounded buffer. When a buffer is full the oldest
change is dropped, so a slow or absent reader never blocks a mutation.
"""

import logging
import threading
from collections import deque
from typing import Iterator, Optional

from specledger.tracker.history import Change

logger = logging.getLogger(__name__)


class Subscription:
    """A stream of Change events. Iterate it, or poll with get()."""

    def __init__(self, broadcaster: "ChangeBroadcaster", maxsize: int):
        self._broadcaster = broadcaster
        self._buffer: deque[Change] = deque(maxlen=maxsize)
        self._cond = threading.Condition()
        self._closed = False
        self.dropped = 0

    def _deliver(self, change: Change) -> None:
        with self._cond:
            if self._closed:
                return
            if len(self._buffer) == self._buffer.maxlen:
                self.dropped += 1
            self._buffer.append(change)
            self._cond.notify()

    def get(self, timeout: Optional[float] = None) -> Optional[Change]:
        """Next change, waiting up to `timeout` seconds. None on timeout or close."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._buffer or self._closed, timeout):
                return None
            if self._buffer:
                return self._buffer.popleft()
            return None

    def drain(self) -> list[Change]:
        """Everything buffered right now, without waiting."""
        with self._cond:
            changes = list(self._buffer)
            self._buffer.clear()
            return changes

    def close(self) -> None:
        self._broadcaster._unsubscribe(self)
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[Change]:
        while True:
            change = self.get()
            if change is None:
                return
            yield change

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ChangeBroadcaster:
    def __init__(self, default_maxsize: int = 100):
        self.default_maxsize = default_maxsize
        self._subscribers: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, maxsize: Optional[int] = None) -> Subscription:
        subscription = Subscription(self, maxsize or self.default_maxsize)
        with self._lock:
            self._subscribers.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    def publish(self, change: Change) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for subscription in subscribers:
            subscription._deliver(change)
        logger.debug(f"Broadcast {change.id} -> {change.new_state} to {len(subscribers)} subscribers")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
