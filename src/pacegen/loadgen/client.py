from __future__ import annotations

import asyncio
import logging
import time
from typing import Mapping

import httpx

from pacegen.config import RunConfig
from pacegen.metrics import TRANSPORT_FAILURE, RequestOutcome, RunStats

logger = logging.getLogger(__name__)

DEFAULT_HEADERS: Mapping[str, str] = {
    "User-Agent": "pacegen/0.2 (load testing)",
    "Accept": "text/html,application/json",
}

_OVERLOAD_ADVISORIES: Mapping[int, str] = {
    429: "Server rate limiting (429) - consider reducing RPS",
    503: "Service unavailable (503) - server may be overloaded",
}


def build_client(config: RunConfig, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    pool_size = config.concurrency * 2
    limits = httpx.Limits(
        max_connections=pool_size,
        max_keepalive_connections=pool_size,
        keepalive_expiry=90.0,
    )
    return httpx.AsyncClient(
        headers=DEFAULT_HEADERS,
        timeout=config.timeout_sec,
        limits=limits,
        transport=transport,
    )


async def _fetch(client: httpx.AsyncClient, url: str) -> int:
    async with client.stream("GET", url) as resp:
        # drain so the connection goes back to the pool
        async for _ in resp.aiter_bytes():
            pass
        return resp.status_code


async def send_request(client: httpx.AsyncClient, url: str, timeout_sec: float | None = None) -> RequestOutcome:
    """GET ``url`` once; ``timeout_sec`` caps the whole exchange including the body."""
    start_mono = time.perf_counter()
    try:
        status = await asyncio.wait_for(_fetch(client, url), timeout=timeout_sec)
    except asyncio.TimeoutError:
        logger.debug("request to %s exceeded %ss", url, timeout_sec)
        return RequestOutcome(latency_ms=None, status_code=TRANSPORT_FAILURE, success=False)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.debug("request to %s failed: %r", url, exc)
        return RequestOutcome(latency_ms=None, status_code=TRANSPORT_FAILURE, success=False)
    latency_ms = (time.perf_counter() - start_mono) * 1000.0
    advisory = _OVERLOAD_ADVISORIES.get(status)
    if advisory is not None:
        logger.warning(advisory)
    return RequestOutcome(latency_ms=latency_ms, status_code=status, success=200 <= status < 400)


async def execute(
    client: httpx.AsyncClient,
    url: str,
    stats: RunStats,
    timeout_sec: float | None = None,
) -> RequestOutcome:
    outcome = await send_request(client, url, timeout_sec)
    stats.record(outcome)
    return outcome
