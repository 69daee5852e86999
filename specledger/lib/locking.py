"""
Lock management for specledger.

Per-document locks serialize mutations against one spec while letting
different specs proceed in parallel. File writes additionally take an flock
on the spec file itself so that two processes never interleave a rewrite.
"""

import fcntl
import logging
import threading
import time
from contextlib import contextmanager, ExitStack
from typing import Hashable, Iterable

from specledger.lib.errors import LockTimeout

logger = logging.getLogger(__name__)

FLOCK_POLL_INTERVAL = 0.05


class DocumentLocks:
    """One exclusive lock per document key.

    An entry exists only while some thread holds or waits for it, so keys of
    unloaded documents do not accumulate.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._locks: dict[Hashable, tuple[threading.Lock, int]] = {}
        self._registry_lock = threading.Lock()

    def _acquire_ref(self, key: Hashable) -> threading.Lock:
        with self._registry_lock:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)
            return lock

    def _release_ref(self, key: Hashable) -> None:
        with self._registry_lock:
            lock, users = self._locks[key]
            if users == 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)

    @contextmanager
    def hold(self, key: Hashable, timeout: float | None = None):
        """Acquire the lock for `key`, yield, release on exit."""
        timeout = self.timeout if timeout is None else timeout
        lock = self._acquire_ref(key)
        try:
            if not lock.acquire(timeout=timeout):
                raise LockTimeout(f"Could not acquire lock for {key} within {timeout}s")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._release_ref(key)

    @contextmanager
    def hold_many(self, keys: Iterable[Hashable], timeout: float | None = None):
        """Acquire several document locks in sorted order to avoid lock-order deadlocks."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self.hold(key, timeout))
            yield


@contextmanager
def file_lock(fd, timeout: float, lock_name: str):
    """
    Hold an exclusive flock on an open file.

    Args:
        fd: Open file object (or descriptor) to lock
        timeout: Seconds to wait for the lock
        lock_name: Human-readable name for error messages
    """
    start = time.monotonic()

    while True:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            break
        except BlockingIOError:
            if time.monotonic() - start > timeout:
                raise LockTimeout(f"Could not acquire {lock_name} within {timeout}s")
            time.sleep(FLOCK_POLL_INTERVAL)

    try:
        yield
    finally:
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        except OSError as e:
            logger.warning(f"Failed to release {lock_name}: {e}")
