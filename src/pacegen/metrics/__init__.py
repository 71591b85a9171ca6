from __future__ import annotations

from pacegen.metrics.aggregator import UNSET_MIN_LATENCY, RunStats
from pacegen.metrics.atomic import AtomicInt
from pacegen.metrics.models import TRANSPORT_FAILURE, RequestOutcome, StatsSnapshot

__all__ = [
    "TRANSPORT_FAILURE",
    "UNSET_MIN_LATENCY",
    "AtomicInt",
    "RequestOutcome",
    "RunStats",
    "StatsSnapshot",
]
