from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pacegen.config import RunConfig
from pacegen.metrics import StatsSnapshot

HIGH_LATENCY_MS = 2000.0
RPS_SHORTFALL_RATIO = 0.8


class Grade(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


_GRADE_TEXT = {
    Grade.EXCELLENT: "[green]Excellent - system handled load very well[/green]",
    Grade.GOOD: "[green]Good - system performed adequately[/green]",
    Grade.FAIR: "[yellow]Fair - some issues detected, investigate errors[/yellow]",
    Grade.POOR: "[red]Poor - significant issues, system may be overloaded[/red]",
}


@dataclass(frozen=True, slots=True)
class Assessment:
    grade: Grade
    warnings: list[str] = field(default_factory=list)


def assess(snapshot: StatsSnapshot, target_rps: float) -> Assessment:
    rate = snapshot.success_rate * 100
    if rate >= 99.5:
        grade = Grade.EXCELLENT
    elif rate >= 95:
        grade = Grade.GOOD
    elif rate >= 90:
        grade = Grade.FAIR
    else:
        grade = Grade.POOR
    warnings: list[str] = []
    if snapshot.achieved_rps < target_rps * RPS_SHORTFALL_RATIO:
        warnings.append("Could not achieve target RPS - system may be bottlenecked")
    avg = snapshot.avg_latency_ms
    if avg is not None and avg > HIGH_LATENCY_MS:
        warnings.append("High average latency - check server performance")
    return Assessment(grade=grade, warnings=warnings)


def _pct(part: int, whole: int) -> str:
    if not whole:
        return "0.0%"
    return f"{part / whole * 100:.1f}%"


def _ms(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.1f}ms"


def render_report(snapshot: StatsSnapshot, config: RunConfig, console: Console | None = None) -> Assessment:
    console = console or Console()
    summary = Table(title="Load test results", show_header=False, expand=False)
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("Total duration", f"{snapshot.elapsed_sec:.3f}s")
    summary.add_row("Started", snapshot.started_at.strftime("%Y-%m-%d %H:%M:%S"))
    if snapshot.ended_at is not None:
        summary.add_row("Ended", snapshot.ended_at.strftime("%Y-%m-%d %H:%M:%S"))
    summary.add_row("Total requests", f"{snapshot.total:,}")
    summary.add_row("Successful", f"{snapshot.succeeded:,} ({_pct(snapshot.succeeded, snapshot.total)})")
    summary.add_row("Failed", f"{snapshot.failed:,} ({_pct(snapshot.failed, snapshot.total)})")
    summary.add_row("Average RPS", f"{snapshot.achieved_rps:.2f} req/s")
    summary.add_row("Target RPS", f"{config.rps} req/s")
    summary.add_row("Concurrent users", str(config.concurrency))
    if snapshot.has_latency:
        summary.add_row("Latency avg", _ms(snapshot.avg_latency_ms))
        summary.add_row("Latency min", _ms(snapshot.min_latency_ms))
        summary.add_row("Latency max", _ms(snapshot.max_latency_ms))
    console.print(summary)

    codes = Table(title="HTTP status codes")
    codes.add_column("Status", style="cyan")
    codes.add_column("Count", justify="right")
    codes.add_column("Share", justify="right")
    for key, count in sorted(snapshot.status_codes.items(), key=lambda item: int(item[0])):
        label = "transport error" if key == "0" else key
        codes.add_row(label, f"{count:,}", _pct(count, snapshot.total))
    console.print(codes)

    result = assess(snapshot, config.rps)
    lines = [_GRADE_TEXT[result.grade]]
    lines.extend(f"[yellow]{warning}[/yellow]" for warning in result.warnings)
    console.print(Panel("\n".join(lines), title="Performance assessment"))
    return result
