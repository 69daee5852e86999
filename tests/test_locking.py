"""Tests for specledger.lib.locking module."""

import fcntl
import threading
import pytest

from specledger.lib.errors import LockTimeout
from specledger.lib.locking import DocumentLocks, file_lock


class TestDocumentLocks:
    """Test DocumentLocks."""

    def test_hold_is_exclusive(self):
        locks = DocumentLocks(timeout=0.05)
        with locks.hold(1):
            result = []
            thread = threading.Thread(target=lambda: result.append(_try_hold(locks, 1)))
            thread.start()
            thread.join()
        assert result == [False]

    def test_different_keys_do_not_block(self):
        locks = DocumentLocks(timeout=0.05)
        with locks.hold(1):
            result = []
            thread = threading.Thread(target=lambda: result.append(_try_hold(locks, 2)))
            thread.start()
            thread.join()
        assert result == [True]

    def test_released_after_exception(self):
        locks = DocumentLocks(timeout=0.05)
        with pytest.raises(RuntimeError):
            with locks.hold(1):
                raise RuntimeError("boom")
        with locks.hold(1):
            pass

    def test_hold_many_deduplicates(self):
        locks = DocumentLocks(timeout=0.05)
        with locks.hold_many([2, 1, 2]):
            pass
        with locks.hold_many([1, 2]):
            pass

    def test_entries_dropped_when_unused(self):
        locks = DocumentLocks(timeout=0.05)
        with locks.hold_many([1, 2]):
            assert len(locks) == 2
            result = []
            thread = threading.Thread(target=lambda: result.append(_try_hold(locks, 1)))
            thread.start()
            thread.join()
            assert result == [False]
            assert len(locks) == 2
        assert len(locks) == 0

    def test_hold_many_releases_on_timeout(self):
        locks = DocumentLocks(timeout=0.05)
        blocker_ready = threading.Event()
        release = threading.Event()

        def blocker():
            with locks.hold(2):
                blocker_ready.set()
                release.wait(5)

        thread = threading.Thread(target=blocker)
        thread.start()
        blocker_ready.wait(5)
        try:
            with pytest.raises(LockTimeout):
                with locks.hold_many([1, 2]):
                    pass
            # key 1 was acquired then released when key 2 timed out
            with locks.hold(1):
                pass
        finally:
            release.set()
            thread.join()


def _try_hold(locks, key):
    try:
        with locks.hold(key):
            return True
    except LockTimeout:
        return False


class TestFileLock:
    """Test file_lock."""

    def test_lock_and_release(self, tmp_path):
        path = tmp_path / "spec.md"
        path.write_text("x")
        with open(path, "r+") as f:
            with file_lock(f, 1.0, "test lock"):
                pass
            # released: a non-blocking lock on a new descriptor succeeds
            with open(path, "r+") as other:
                fcntl.flock(other, fcntl.LOCK_EX | fcntl.LOCK_NB)
                fcntl.flock(other, fcntl.LOCK_UN)

    def test_timeout(self, tmp_path):
        path = tmp_path / "spec.md"
        path.write_text("x")
        with open(path, "r+") as holder, open(path, "r+") as waiter:
            fcntl.flock(holder, fcntl.LOCK_EX)
            try:
                with pytest.raises(LockTimeout) as exc_info:
                    with file_lock(waiter, 0.1, "spec lock"):
                        pass
                assert "spec lock" in str(exc_info.value)
            finally:
                fcntl.flock(holder, fcntl.LOCK_UN)
