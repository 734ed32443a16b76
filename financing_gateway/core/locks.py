"""Keyed asyncio locks for serializing per-plan and per-customer mutations."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator


class KeyedLockRegistry:
    """
    Hands out one asyncio.Lock per key.

    Mutations for the same key run one at a time, different keys run
    in parallel. Locks are dropped once no task holds or waits on them,
    so the registry does not grow with the number of plans ever seen.

    This serializes work inside a single process. Across processes the
    repositories additionally lock the plan row (SELECT ... FOR UPDATE).
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}
        self._mutex = asyncio.Lock()

    @asynccontextmanager
    async def acquire(self, key: str) -> AsyncGenerator[None, None]:
        """Hold the lock for `key` for the duration of the block."""
        async with self._mutex:
            lock = self._locks.setdefault(key, asyncio.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1

        try:
            async with lock:
                yield
        finally:
            async with self._mutex:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


plan_locks = KeyedLockRegistry()
