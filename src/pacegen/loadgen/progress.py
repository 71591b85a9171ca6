from __future__ import annotations

import asyncio

from rich.console import Console
from rich.live import Live
from rich.text import Text

from pacegen.metrics import RunStats, StatsSnapshot

DEFAULT_INTERVAL_SEC = 2.0


class ProgressReporter:
    """Periodically renders a one-line progress summary of a run.

    Only ever reads snapshots of the shared statistics.
    """

    def __init__(
        self,
        stats: RunStats,
        total: int,
        interval: float = DEFAULT_INTERVAL_SEC,
        console: Console | None = None,
    ) -> None:
        self.stats = stats
        self.total = total
        self.interval = interval
        self.console = console or Console(stderr=True)

    def format_line(self, snapshot: StatsSnapshot) -> str:
        pct = snapshot.total / self.total * 100 if self.total else 100.0
        return (
            f"Progress: {snapshot.total}/{self.total} ({pct:.1f}%) | "
            f"Success: {snapshot.succeeded} | Failed: {snapshot.failed} | "
            f"RPS: {snapshot.achieved_rps:.1f} | Elapsed: {snapshot.elapsed_sec:.1f}s"
        )

    def _render(self) -> Text:
        return Text(self.format_line(self.stats.snapshot()))

    async def run(self, stop: asyncio.Event) -> None:
        live = Live(self._render(), console=self.console, auto_refresh=False, transient=False)
        live.start()
        try:
            while not stop.is_set():
                try:
                    await asyncio.wait_for(stop.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    live.update(self._render(), refresh=True)
        finally:
            live.update(self._render(), refresh=True)
            live.stop()
