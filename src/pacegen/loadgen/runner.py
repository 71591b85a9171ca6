from __future__ import annotations

import asyncio
import logging
import random

import httpx
from rich.console import Console

from pacegen.config import RunConfig
from pacegen.loadgen.client import build_client, execute
from pacegen.loadgen.pacing import PermitQueue, dispatch
from pacegen.loadgen.progress import DEFAULT_INTERVAL_SEC, ProgressReporter
from pacegen.metrics import RunStats, StatsSnapshot

logger = logging.getLogger(__name__)

THINK_TIME_JITTER = 0.2


def think_time(base_sec: float, rng: random.Random) -> float:
    """Return ``base_sec`` shifted by a uniform variation of at most 20%."""
    if base_sec <= 0:
        return 0.0
    return base_sec + rng.uniform(-THINK_TIME_JITTER, THINK_TIME_JITTER) * base_sec


async def worker(
    queue: PermitQueue,
    client: httpx.AsyncClient,
    config: RunConfig,
    stats: RunStats,
    cancelled: asyncio.Event,
    rng: random.Random,
) -> int:
    handled = 0
    while True:
        permit = await queue.get()
        if permit is None or cancelled.is_set():
            return handled
        await execute(client, config.url, stats, config.timeout_sec)
        handled += 1
        if cancelled.is_set():
            return handled
        pause = think_time(config.think_time_sec, rng)
        if pause > 0:
            await asyncio.sleep(pause)


class LoadRun:
    """One load test: dispatcher, worker pool and optional progress display.

    ``cancel`` stops the run in progress: dispatch ends and workers finish
    their in-flight request without taking new permits. The signal is also
    raised when ``run`` returns, whichever way it exits. Each call to ``run``
    starts from fresh statistics, a fresh signal and a reseeded generator.
    """

    def __init__(
        self,
        config: RunConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        console: Console | None = None,
        progress_interval: float = DEFAULT_INTERVAL_SEC,
    ) -> None:
        self.config = config
        self.transport = transport
        self.console = console
        self.progress_interval = progress_interval
        self.rng = random.Random(config.seed)
        self.cancelled: asyncio.Event | None = None
        self.stats = RunStats()
        self.worker_counts: list[int] = []
        self.issued = 0

    def cancel(self) -> None:
        if self.cancelled is not None:
            self.cancelled.set()

    async def run(self) -> StatsSnapshot:
        config = self.config
        logger.info(
            "starting run against %s: %d requests at %d rps with %d workers",
            config.url,
            config.requests,
            config.rps,
            config.concurrency,
        )
        logger.debug("run config: %s", dict(config.to_metadata()))
        self.stats = RunStats()
        self.rng = random.Random(config.seed)
        self.cancelled = cancelled = asyncio.Event()
        reporter_task: asyncio.Task[None] | None = None
        if config.show_progress:
            reporter = ProgressReporter(
                self.stats,
                config.requests,
                interval=self.progress_interval,
                console=self.console,
            )
            reporter_task = asyncio.create_task(reporter.run(cancelled))
        try:
            async with build_client(config, self.transport) as client:
                queue = PermitQueue(config.requests)
                workers = [
                    asyncio.create_task(
                        worker(queue, client, config, self.stats, cancelled, self.rng)
                    )
                    for _ in range(config.concurrency)
                ]
                try:
                    self.issued = await dispatch(queue, config.requests, config.rps, cancelled)
                except BaseException:
                    self.cancel()
                    raise
                finally:
                    self.worker_counts = list(await asyncio.gather(*workers))
            self.stats.finalize()
        finally:
            self.cancel()
            if reporter_task is not None:
                await reporter_task
        snapshot = self.stats.snapshot()
        logger.info(
            "run finished: %d requests (%d ok, %d failed) in %.2fs",
            snapshot.total,
            snapshot.succeeded,
            snapshot.failed,
            snapshot.elapsed_sec,
        )
        return snapshot


async def run_load(
    config: RunConfig,
    transport: httpx.AsyncBaseTransport | None = None,
    console: Console | None = None,
) -> StatsSnapshot:
    return await LoadRun(config, transport=transport, console=console).run()
