"""Tests for the per-identifier lock manager."""

from __future__ import annotations

import threading
import time

import pytest

from listsync.core.types import LockTimeoutError
from listsync.sync.locks import LockManager


class TestLockManagerBasics:
    """Tests for acquire/release bookkeeping."""

    def test_acquire_and_release(self) -> None:
        """Should mark the key as locked until released."""
        manager = LockManager()
        entry = manager.acquire("mal:anime:1")

        assert manager.is_locked("mal:anime:1")
        assert entry.key == "mal:anime:1"
        assert manager.release("mal:anime:1") is True
        assert not manager.is_locked("mal:anime:1")

    def test_release_is_idempotent(self) -> None:
        """Releasing an unheld key should be a no-op."""
        manager = LockManager()
        assert manager.release("mal:anime:1") is False
        manager.acquire("mal:anime:1")
        assert manager.release("mal:anime:1") is True
        assert manager.release("mal:anime:1") is False

    def test_release_with_foreign_entry(self) -> None:
        """An entry only releases its own hold."""
        manager = LockManager()
        first = manager.acquire("k")
        manager.release("k", first)
        manager.acquire("k")

        assert manager.release("k", first) is False
        assert manager.is_locked("k")

    def test_locked_context_manager(self) -> None:
        manager = LockManager()
        with manager.locked("k") as entry:
            assert manager.is_locked("k")
            assert entry.owner == threading.current_thread().name
        assert not manager.is_locked("k")

    def test_locked_releases_on_error(self) -> None:
        manager = LockManager()
        with pytest.raises(RuntimeError):
            with manager.locked("k"):
                raise RuntimeError("boom")
        assert not manager.is_locked("k")

    def test_with_lock_returns_result(self) -> None:
        manager = LockManager()
        assert manager.with_lock("k", lambda: 42) == 42
        assert not manager.is_locked("k")

    def test_lock_info(self) -> None:
        manager = LockManager()
        assert manager.lock_info("k") is None
        manager.acquire("k")
        info = manager.lock_info("k")
        assert info is not None
        assert info["key"] == "k"
        assert info["is_stale"] is False

    def test_stats_and_release_all(self) -> None:
        manager = LockManager()
        manager.acquire("a")
        manager.acquire("b")

        stats = manager.stats()
        assert stats["active_locks"] == 2
        assert stats["stale_locks"] == 0

        assert manager.release_all() == 2
        assert manager.stats()["active_locks"] == 0

    def test_instances_are_isolated(self) -> None:
        """Separate managers never share locks."""
        first, second = LockManager(), LockManager()
        first.acquire("k")
        entry = second.acquire("k", timeout=0.1)
        assert entry.key == "k"


class TestLockManagerContention:
    """Tests for blocking, timeouts and stale locks."""

    def test_waiter_blocks_until_release(self) -> None:
        """A second acquirer should wait for the first to release."""
        manager = LockManager()
        manager.acquire("k")
        acquired = threading.Event()

        def waiter() -> None:
            manager.acquire("k")
            acquired.set()

        thread = threading.Thread(target=waiter)
        thread.start()
        assert not acquired.wait(0.1)

        manager.release("k")
        assert acquired.wait(2.0)
        thread.join(timeout=2.0)
        assert manager.is_locked("k")

    def test_distinct_keys_do_not_block(self) -> None:
        manager = LockManager(wait_timeout=0.2)
        manager.acquire("mal:anime:1")
        start = time.monotonic()
        manager.acquire("mal:anime:2")
        assert time.monotonic() - start < 0.1

    def test_wait_timeout(self) -> None:
        """Should raise LockTimeoutError when the holder keeps the lock."""
        manager = LockManager(hold_timeout=10.0, wait_timeout=0.1)
        manager.acquire("k")

        with pytest.raises(LockTimeoutError) as exc_info:
            manager.acquire("k")
        assert exc_info.value.key == "k"
        assert exc_info.value.waited >= 0.1

    def test_per_call_timeout(self) -> None:
        manager = LockManager(hold_timeout=10.0, wait_timeout=10.0)
        manager.acquire("k")
        with pytest.raises(LockTimeoutError):
            manager.acquire("k", timeout=0.05)

    def test_stale_lock_force_released(self, caplog: pytest.LogCaptureFixture) -> None:
        """A lock held past hold_timeout is taken over with a warning."""
        manager = LockManager(hold_timeout=0.05, wait_timeout=2.0)
        stale = manager.acquire("k")

        with caplog.at_level("WARNING", logger="listsync.sync.locks"):
            fresh = manager.acquire("k")

        assert fresh is not stale
        assert "Force-releasing stale lock" in caplog.text
        assert manager.stats()["force_released"] == 1
        # The old holder can no longer release the new lock
        assert manager.release("k", stale) is False
        assert manager.is_locked("k")

    def test_no_interleaving(self) -> None:
        """At most one thread is inside the critical section per key."""
        manager = LockManager()
        inside = 0
        max_inside = 0
        counter_lock = threading.Lock()

        def work() -> None:
            nonlocal inside, max_inside
            with manager.locked("k"):
                with counter_lock:
                    inside += 1
                    max_inside = max(max_inside, inside)
                time.sleep(0.01)
                with counter_lock:
                    inside -= 1

        threads = [threading.Thread(target=work) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5.0)

        assert max_inside == 1
        assert not manager.is_locked("k")
