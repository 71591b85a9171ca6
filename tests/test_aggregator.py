from __future__ import annotations

import threading

from hypothesis import given, strategies as st

from pacegen.metrics import TRANSPORT_FAILURE, UNSET_MIN_LATENCY, RequestOutcome, RunStats

outcomes = st.one_of(
    st.builds(
        RequestOutcome,
        latency_ms=st.floats(min_value=0.0, max_value=60_000.0),
        status_code=st.sampled_from([200, 201, 301, 404, 429, 500, 503]),
        success=st.booleans(),
    ),
    st.just(RequestOutcome(latency_ms=None, status_code=TRANSPORT_FAILURE, success=False)),
)


@given(st.lists(outcomes, max_size=200))
def test_record_keeps_invariants(recorded: list[RequestOutcome]) -> None:
    stats = RunStats()
    for outcome in recorded:
        stats.record(outcome)
    snap = stats.snapshot()
    assert snap.total == len(recorded)
    assert snap.succeeded + snap.failed == snap.total
    assert sum(snap.status_codes.values()) == snap.total
    latencies = [o.latency_ms for o in recorded if o.latency_ms is not None]
    assert snap.latency_count == len(latencies)
    if latencies:
        assert snap.min_latency_ms is not None and snap.max_latency_ms is not None
        for latency in latencies:
            # microsecond storage rounds to the nearest 0.001ms
            assert snap.min_latency_ms <= latency + 0.001
            assert latency - 0.001 <= snap.max_latency_ms
    else:
        assert snap.min_latency_ms is None
        assert snap.max_latency_ms is None


def test_transport_failures_leave_latency_unset() -> None:
    stats = RunStats()
    for _ in range(10):
        stats.record(RequestOutcome(latency_ms=None, status_code=TRANSPORT_FAILURE, success=False))
    snap = stats.snapshot()
    assert (snap.succeeded, snap.failed) == (0, 10)
    assert snap.status_codes == {"0": 10}
    assert stats.min_latency_us.load() == UNSET_MIN_LATENCY
    assert stats.max_latency_us.load() == 0
    assert snap.avg_latency_ms is None


def test_unfavorable_response_still_counts_latency() -> None:
    stats = RunStats()
    stats.record(RequestOutcome(latency_ms=12.5, status_code=500, success=False))
    stats.record(RequestOutcome(latency_ms=2.5, status_code=200, success=True))
    snap = stats.snapshot()
    assert snap.failed == 1
    assert snap.succeeded == 1
    assert snap.min_latency_ms == 2.5
    assert snap.max_latency_ms == 12.5
    assert snap.avg_latency_ms == 7.5
    assert snap.status_codes == {"500": 1, "200": 1}


def test_finalize_is_idempotent() -> None:
    stats = RunStats()
    assert stats.snapshot().ended_at is None
    stats.finalize()
    first = stats.ended_at
    stats.finalize()
    assert stats.ended_at == first
    assert stats.snapshot().finished


def test_concurrent_threads_lose_no_updates() -> None:
    stats = RunStats()
    threads_n = 16
    per_thread = 2_000
    barrier = threading.Barrier(threads_n)

    def hammer(idx: int) -> None:
        barrier.wait()
        for i in range(per_thread):
            code = 200 if i % 2 else 500 + idx % 4
            stats.record(RequestOutcome(latency_ms=float(i % 97 + idx), status_code=code, success=code == 200))

    threads = [threading.Thread(target=hammer, args=(i,)) for i in range(threads_n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snap = stats.snapshot()
    expected = threads_n * per_thread
    assert snap.total == expected
    assert snap.succeeded + snap.failed == expected
    assert sum(snap.status_codes.values()) == expected
    assert snap.min_latency_ms == 0.0
    assert snap.max_latency_ms == 96.0 + threads_n - 1
