"""Per-partition mutual exclusion with bounded acquisition."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from magnetio.domain.exceptions import LockTimeoutError

log = structlog.get_logger(__name__)


class PartitionLocks:
    """Owns one ``asyncio.Lock`` per partition key (release year).

    Different keys never contend; the same key is serialized. Locks are
    created lazily and kept for the process lifetime (one per year seen).

    Not thread-safe; intended for a single event loop.
    """

    def __init__(self, *, timeout_seconds: float = 10.0) -> None:
        self._timeout = timeout_seconds
        self._locks: dict[int, asyncio.Lock] = {}

    @property
    def timeout(self) -> float:
        return self._timeout

    def lock_for(self, partition: int) -> asyncio.Lock:
        lock = self._locks.get(partition)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[partition] = lock
        return lock

    def is_locked(self, partition: int) -> bool:
        lock = self._locks.get(partition)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(
        self, partition: int, *, timeout: float | None = None
    ) -> AsyncIterator[None]:
        """Hold the exclusive transaction for *partition*.

        Raises:
            LockTimeoutError: if the lock is not acquired within *timeout*
                seconds (defaults to the instance timeout).
        """
        wait = self._timeout if timeout is None else timeout
        lock = self.lock_for(partition)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=wait)
        except TimeoutError:
            log.warning("partition_lock_timeout", partition=partition, timeout=wait)
            raise LockTimeoutError(partition, wait) from None
        try:
            yield
        finally:
            lock.release()
