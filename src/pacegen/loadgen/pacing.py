from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

from pacegen.errors import QueueClosedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Permit:
    sequence: int
    issued_at: float


class Ticker:
    """Periodic clock anchored to a fixed grid.

    Tick ``k`` is due at ``origin + k * interval``. A late tick does not push
    back the ones after it; ticks that fell behind fire back to back until the
    grid is caught up.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._clock = clock
        self.origin = clock()
        self.ticks = 0

    def next_deadline(self) -> float:
        return self.origin + (self.ticks + 1) * self.interval

    async def tick(self) -> float:
        deadline = self.next_deadline()
        while True:
            delay = deadline - self._clock()
            if delay <= 0:
                break
            await asyncio.sleep(delay)
        self.ticks += 1
        return deadline


class PermitQueue:
    """Bounded FIFO of permits that can be closed.

    Once closed, ``get`` keeps handing out whatever is left and then returns
    ``None`` to every consumer.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.issued = 0
        self._items: deque[Permit] = deque()
        self._closed = False
        lock = asyncio.Lock()
        self._not_empty = asyncio.Condition(lock)
        self._not_full = asyncio.Condition(lock)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, permit: Permit) -> None:
        """Append ``permit``, waiting while the queue is at capacity."""
        async with self._not_full:
            await self._not_full.wait_for(lambda: self._closed or len(self._items) < self.capacity)
            if self._closed:
                raise QueueClosedError("permit queue is closed")
            self._items.append(permit)
            self.issued += 1
            self._not_empty.notify(1)

    async def close(self) -> None:
        async with self._not_empty:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    async def get(self) -> Permit | None:
        async with self._not_empty:
            await self._not_empty.wait_for(lambda: bool(self._items) or self._closed)
            if self._items:
                permit = self._items.popleft()
                self._not_full.notify(1)
                return permit
            return None


async def dispatch(
    queue: PermitQueue,
    total: int,
    rate: float,
    cancelled: asyncio.Event,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Issue ``total`` permits at ``rate`` per second, then close ``queue``."""
    ticker = Ticker(1.0 / rate, clock=clock)
    try:
        for sequence in range(total):
            await ticker.tick()
            if cancelled.is_set():
                logger.info("dispatch cancelled after %d of %d permits", queue.issued, total)
                break
            await queue.put(Permit(sequence=sequence, issued_at=clock()))
        else:
            logger.debug("dispatched %d permits in %.3fs", total, clock() - ticker.origin)
    finally:
        await queue.close()
    return queue.issued
