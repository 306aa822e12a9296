"""Per-identifier locking for document mutations.

This module provides:
- LockEntry: One held lock
- LockManager: Registry of in-flight locks keyed by sync identifier

A LockManager is an ordinary object owned by whoever coordinates writes
(normally SyncService), so tests can build isolated instances.

Timeouts:
    hold_timeout: A lock held longer than this is stale. The next waiter
        force-releases it (with a warning) and takes it over.
    wait_timeout: A waiter gives up after this long and gets
        LockTimeoutError.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, TypeVar

from listsync.core.types import LockTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_HOLD_TIMEOUT = 30.0
DEFAULT_WAIT_TIMEOUT = 60.0


@dataclass(eq=False)
class LockEntry:
    """A held lock.

    Attributes:
        key: Sync identifier the lock guards
        acquired_at: time.monotonic() at acquisition
        owner: Name of the acquiring thread
    """

    key: str
    acquired_at: float = field(default_factory=time.monotonic)
    owner: str = field(default_factory=lambda: threading.current_thread().name)

    def held_for(self) -> float:
        return time.monotonic() - self.acquired_at


class LockManager:
    """Mutual exclusion per sync identifier.

    Waiting blocks on a condition variable; there is no polling. Distinct
    keys never block each other.
    """

    def __init__(
        self,
        hold_timeout: float = DEFAULT_HOLD_TIMEOUT,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
    ) -> None:
        """Initialize the lock manager.

        Args:
            hold_timeout: Seconds after which a held lock is considered stale
            wait_timeout: Seconds a caller waits before LockTimeoutError
        """
        self.hold_timeout = hold_timeout
        self.wait_timeout = wait_timeout
        self._locks: dict[str, LockEntry] = {}
        self._mutex = threading.Lock()
        self._released = threading.Condition(self._mutex)
        self._force_released = 0

    def acquire(self, key: str, timeout: float | None = None) -> LockEntry:
        """Acquire the lock for key, blocking while another holder has it.

        Args:
            key: Sync identifier
            timeout: Override of wait_timeout for this call

        Returns:
            The new LockEntry. Pass it to release() to release only this hold.

        Raises:
            LockTimeoutError: If the lock could not be acquired in time.
        """
        wait_timeout = self.wait_timeout if timeout is None else timeout
        start = time.monotonic()
        deadline = start + wait_timeout

        with self._released:
            while True:
                current = self._locks.get(key)
                if current is None:
                    break

                held_for = current.held_for()
                if held_for > self.hold_timeout:
                    logger.warning(
                        "Force-releasing stale lock for %s (held %.1fs by %s)",
                        key,
                        held_for,
                        current.owner,
                    )
                    del self._locks[key]
                    self._force_released += 1
                    break

                now = time.monotonic()
                if now >= deadline:
                    raise LockTimeoutError(key, now - start)

                # Wake up at the deadline or when the holder turns stale
                stale_in = self.hold_timeout - held_for
                self._released.wait(timeout=max(0.0, min(deadline - now, stale_in)))

            entry = LockEntry(key=key)
            self._locks[key] = entry

        waited = time.monotonic() - start
        if waited > 0.01:
            logger.debug("Acquired lock for %s after %.3fs", key, waited)
        return entry

    def release(self, key: str, entry: LockEntry | None = None) -> bool:
        """Release the lock for key.

        Safe to call on a key that is not held. With an entry, the lock is
        released only if that entry still holds it; a holder whose lock was
        force-released cannot release its successor's lock.

        Returns:
            True if a lock was released.
        """
        with self._released:
            current = self._locks.get(key)
            if current is None:
                return False
            if entry is not None and current is not entry:
                logger.debug("Lock for %s already taken over, not releasing", key)
                return False
            del self._locks[key]
            self._released.notify_all()
            return True

    @contextmanager
    def locked(self, key: str, timeout: float | None = None) -> Iterator[LockEntry]:
        """Hold the lock for key for the duration of a with block."""
        entry = self.acquire(key, timeout=timeout)
        try:
            yield entry
        finally:
            self.release(key, entry)

    def with_lock(self, key: str, fn: Callable[[], T]) -> T:
        """Run fn while holding the lock for key."""
        with self.locked(key):
            return fn()

    def is_locked(self, key: str) -> bool:
        with self._mutex:
            return key in self._locks

    def lock_info(self, key: str) -> dict[str, Any] | None:
        """Describe the lock on key, or None if not held."""
        with self._mutex:
            entry = self._locks.get(key)
            if entry is None:
                return None
            held_for = entry.held_for()
            return {
                "key": key,
                "owner": entry.owner,
                "held_for": held_for,
                "is_stale": held_for > self.hold_timeout,
            }

    def stats(self) -> dict[str, int | float]:
        """Get lock statistics."""
        with self._mutex:
            ages = [entry.held_for() for entry in self._locks.values()]
            return {
                "active_locks": len(ages),
                "stale_locks": sum(1 for age in ages if age > self.hold_timeout),
                "oldest_lock_age": max(ages, default=0.0),
                "force_released": self._force_released,
            }

    def release_all(self) -> int:
        """Release every lock. Returns the number released."""
        with self._released:
            count = len(self._locks)
            self._locks.clear()
            self._released.notify_all()
        if count:
            logger.warning("Force-released %d locks", count)
        return count
