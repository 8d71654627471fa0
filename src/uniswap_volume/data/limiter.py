"""FIFO concurrency limiter for coroutine work units."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


class ConcurrencyLimiter:
    """Bounds simultaneously running work units to ``limit``.

    Callers beyond the limit are parked in FIFO order. When a unit finishes,
    successfully or not, its slot is handed directly to the oldest live waiter,
    so a newcomer can never overtake someone already queued. A failing unit
    only fails its own caller.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self._limit = limit
        self._running = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def active(self) -> int:
        """Units currently holding a slot."""
        return self._running

    @property
    def waiting(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    async def run(self, work: Callable[[], Awaitable[T]]) -> T:
        """Run ``work()`` once a slot is free and return its result."""
        await self._acquire()
        try:
            return await work()
        finally:
            self._release()

    async def _acquire(self) -> None:
        if self._running < self._limit and not self._waiters:
            self._running += 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Slot was handed over just before cancellation; pass it on.
                self._release()
            elif waiter in self._waiters:
                self._waiters.remove(waiter)
            raise
        # _release() transferred its slot to us without touching the counter

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._running -= 1
