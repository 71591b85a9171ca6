from __future__ import annotations

import asyncio
import time

import pytest

from pacegen.errors import QueueClosedError
from pacegen.loadgen.pacing import Permit, PermitQueue, Ticker, dispatch


def test_ticker_fires_on_fixed_grid() -> None:
    async def go() -> tuple[Ticker, list[float], list[float]]:
        ticker = Ticker(0.01)
        scheduled: list[float] = []
        fired: list[float] = []
        for i in range(10):
            if i == 3:
                # a slow consumer must not shift later ticks
                time.sleep(0.025)
            scheduled.append(await ticker.tick())
            fired.append(time.monotonic())
        return ticker, scheduled, fired

    ticker, scheduled, fired = asyncio.run(go())
    for k, (due, at) in enumerate(zip(scheduled, fired), start=1):
        assert due == pytest.approx(ticker.origin + k * 0.01)
        assert at >= due


def test_ticker_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        Ticker(0)


def test_queue_drains_after_close_then_returns_none() -> None:
    async def go() -> list[Permit | None]:
        queue = PermitQueue(3)
        for i in range(3):
            await queue.put(Permit(sequence=i, issued_at=0.0))
        await queue.close()
        return [await queue.get() for _ in range(5)]

    got = asyncio.run(go())
    assert [p.sequence for p in got[:3] if p is not None] == [0, 1, 2]
    assert got[3:] == [None, None]


def test_put_waits_for_space_when_full() -> None:
    async def go() -> tuple[bool, bool, list[int]]:
        queue = PermitQueue(1)
        await queue.put(Permit(0, 0.0))
        pending = asyncio.create_task(queue.put(Permit(1, 0.0)))
        await asyncio.sleep(0.01)
        blocked = not pending.done()
        first = await queue.get()
        await asyncio.wait_for(pending, timeout=1.0)
        second = await queue.get()
        assert first is not None and second is not None
        return blocked, len(queue) == 0, [first.sequence, second.sequence]

    blocked, drained, order = asyncio.run(go())
    assert blocked
    assert drained
    assert order == [0, 1]


def test_queue_rejects_put_after_close() -> None:
    async def go() -> None:
        queue = PermitQueue(1)
        await queue.close()
        with pytest.raises(QueueClosedError):
            await queue.put(Permit(2, 0.0))

    asyncio.run(go())


def test_close_wakes_blocked_consumers() -> None:
    async def go() -> list[Permit | None]:
        queue = PermitQueue(5)
        waiters = [asyncio.create_task(queue.get()) for _ in range(4)]
        await asyncio.sleep(0.01)
        await queue.close()
        return await asyncio.gather(*waiters)

    assert asyncio.run(go()) == [None] * 4


def test_dispatch_paces_permits_and_closes() -> None:
    async def go() -> tuple[int, float, PermitQueue]:
        queue = PermitQueue(50)
        started = time.monotonic()
        issued = await dispatch(queue, 50, 1000, asyncio.Event())
        return issued, time.monotonic() - started, queue

    issued, elapsed, queue = asyncio.run(go())
    assert issued == 50
    assert len(queue) == 50
    assert queue.closed
    assert elapsed >= 0.05
    assert elapsed < 0.5


def test_dispatch_stops_when_cancelled() -> None:
    async def go() -> tuple[int, PermitQueue]:
        queue = PermitQueue(100)
        cancelled = asyncio.Event()

        async def cancel_soon() -> None:
            await asyncio.sleep(0.05)
            cancelled.set()

        canceller = asyncio.create_task(cancel_soon())
        issued = await dispatch(queue, 100, 100, cancelled)
        await canceller
        return issued, queue

    issued, queue = asyncio.run(go())
    assert 0 < issued < 100
    assert queue.closed
