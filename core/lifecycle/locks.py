import contextlib
import logging
import threading
from typing import Any, Dict, Iterator

from core.exceptions import ConcurrentAcceptConflict

logger = logging.getLogger(__name__)


class PostingLockRegistry:
    """
    Per-posting exclusive locks for the accept-cascade within one process.

    Cross-process exclusion comes from the database row lock taken inside
    the cascade's transaction; this registry makes the loser of an
    in-process race fail fast instead of queueing on the row lock.
    """

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._holders: Dict[str, int] = {}

    def _acquire_entry(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
                self._holders[key] = 0
            self._holders[key] += 1
            return lock

    def _release_entry(self, key: str) -> None:
        with self._guard:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]

    @contextlib.contextmanager
    def hold(self, posting_id: Any) -> Iterator[None]:
        """
        Hold the posting's lock for the duration of the block.

        Raises:
            ConcurrentAcceptConflict: lock not acquired within timeout_seconds
        """
        key = str(posting_id)
        lock = self._acquire_entry(key)
        try:
            if not lock.acquire(timeout=self.timeout_seconds):
                logger.warning(f"Accept lock for posting {key} busy after {self.timeout_seconds}s")
                raise ConcurrentAcceptConflict(f"Another accept is in progress for posting {key}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._release_entry(key)

    def is_held(self, posting_id: Any) -> bool:
        key = str(posting_id)
        with self._guard:
            lock = self._locks.get(key)
        return lock is not None and lock.locked()
