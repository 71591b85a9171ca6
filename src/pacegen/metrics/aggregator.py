from __future__ import annotations

import sys
import time
from datetime import datetime, timezone

from pacegen.metrics.atomic import AtomicInt
from pacegen.metrics.models import RequestOutcome, StatsSnapshot

UNSET_MIN_LATENCY = sys.maxsize


class RunStats:
    """Running statistics shared by every worker of a run.

    Every field is an independent atomic cell; there is no lock spanning
    fields, so readers may see e.g. ``total`` one ahead of the status-code
    counts while a record is in flight. Latencies are held as integer
    microseconds.
    """

    def __init__(self) -> None:
        self.total = AtomicInt()
        self.succeeded = AtomicInt()
        self.failed = AtomicInt()
        self.latency_count = AtomicInt()
        self.total_latency_us = AtomicInt()
        self.min_latency_us = AtomicInt(UNSET_MIN_LATENCY)
        self.max_latency_us = AtomicInt(0)
        self.status_codes: dict[str, AtomicInt] = {}
        self.started_at = datetime.now(timezone.utc)
        self.started_mono = time.perf_counter()
        self.ended_at: datetime | None = None
        self.ended_mono: float | None = None

    def record(self, outcome: RequestOutcome) -> None:
        self.total.add(1)
        if outcome.success:
            self.succeeded.add(1)
        else:
            self.failed.add(1)
        if outcome.latency_ms is not None:
            self._record_latency(max(0, round(outcome.latency_ms * 1000)))
        self._counter_for(outcome.status_key).add(1)

    def _record_latency(self, latency_us: int) -> None:
        self.total_latency_us.add(latency_us)
        self.latency_count.add(1)
        while True:
            current = self.min_latency_us.load()
            if latency_us >= current or self.min_latency_us.compare_and_set(current, latency_us):
                break
        while True:
            current = self.max_latency_us.load()
            if latency_us <= current or self.max_latency_us.compare_and_set(current, latency_us):
                break

    def _counter_for(self, key: str) -> AtomicInt:
        counter = self.status_codes.get(key)
        if counter is None:
            counter = self.status_codes.setdefault(key, AtomicInt())
        return counter

    def finalize(self) -> None:
        if self.ended_mono is not None:
            return
        self.ended_mono = time.perf_counter()
        self.ended_at = datetime.now(timezone.utc)

    def elapsed_sec(self) -> float:
        end = self.ended_mono if self.ended_mono is not None else time.perf_counter()
        return end - self.started_mono

    def snapshot(self) -> StatsSnapshot:
        min_us = self.min_latency_us.load()
        max_us = self.max_latency_us.load()
        recorded = min_us != UNSET_MIN_LATENCY
        return StatsSnapshot(
            total=self.total.load(),
            succeeded=self.succeeded.load(),
            failed=self.failed.load(),
            latency_count=self.latency_count.load(),
            total_latency_ms=self.total_latency_us.load() / 1000.0,
            min_latency_ms=min_us / 1000.0 if recorded else None,
            max_latency_ms=max_us / 1000.0 if recorded else None,
            status_codes={key: counter.load() for key, counter in list(self.status_codes.items())},
            started_at=self.started_at,
            ended_at=self.ended_at,
            elapsed_sec=self.elapsed_sec(),
        )
