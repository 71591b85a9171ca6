from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

TRANSPORT_FAILURE = 0


@dataclass(frozen=True, slots=True)
class RequestOutcome:
    latency_ms: float | None
    status_code: int
    success: bool

    @property
    def status_key(self) -> str:
        return str(self.status_code)


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    total: int
    succeeded: int
    failed: int
    latency_count: int
    total_latency_ms: float
    min_latency_ms: float | None  # None until a latency has been recorded
    max_latency_ms: float | None
    status_codes: Mapping[str, int]
    started_at: datetime
    ended_at: datetime | None
    elapsed_sec: float

    @property
    def has_latency(self) -> bool:
        return self.latency_count > 0

    @property
    def avg_latency_ms(self) -> float | None:
        if not self.latency_count:
            return None
        return self.total_latency_ms / self.latency_count

    @property
    def success_rate(self) -> float:
        if not self.total:
            return 0.0
        return self.succeeded / self.total

    @property
    def achieved_rps(self) -> float:
        if self.elapsed_sec <= 0:
            return 0.0
        return self.total / self.elapsed_sec

    @property
    def finished(self) -> bool:
        return self.ended_at is not None
