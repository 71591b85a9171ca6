from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from dataclasses import replace

from rich.console import Console
from rich.logging import RichHandler
from rich.rule import Rule

from pacegen.config import PROFILES, RunConfig, apply_profile
from pacegen.errors import ConfigError
from pacegen.loadgen.runner import LoadRun
from pacegen.metrics import StatsSnapshot
from pacegen.report import render_report

logger = logging.getLogger(__name__)
console = Console()

_TUNABLE_FLAGS = {
    "requests": "requests",
    "rps": "rps",
    "concurrency": "concurrency",
    "think_time": "think_time_sec",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rate-paced HTTP load generator")
    parser.add_argument("--url", default="", help="Target URL to test")
    parser.add_argument("--profile", choices=sorted(PROFILES), help="Use a predefined traffic profile")
    parser.add_argument("--requests", type=int, default=None, help="Total number of requests (default 100)")
    parser.add_argument("--rps", type=int, default=None, help="Requests per second (default 10)")
    parser.add_argument("--concurrency", type=int, default=None, help="Number of concurrent workers (default 5)")
    parser.add_argument("--timeout", type=float, default=30.0, help="Request timeout in seconds")
    parser.add_argument(
        "--think-time", type=int, default=None, help="Delay between requests in milliseconds (default 100)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for think-time variation")
    parser.add_argument(
        "--authorized",
        action="store_true",
        help="Skip the authorization prompt (use only for your own systems)",
    )
    parser.add_argument("--no-progress", action="store_true", help="Hide the live progress line")
    parser.add_argument("--list-profiles", action="store_true", help="List available test profiles")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def build_config(args: argparse.Namespace) -> RunConfig:
    config = RunConfig(
        url=args.url,
        timeout_sec=args.timeout,
        show_progress=not args.no_progress,
        seed=args.seed,
    )
    explicit: set[str] = set()
    overrides: dict[str, object] = {}
    for flag, field_name in _TUNABLE_FLAGS.items():
        value = getattr(args, flag)
        if value is None:
            continue
        explicit.add(field_name)
        overrides[field_name] = value / 1000.0 if flag == "think_time" else value
    config = replace(config, **overrides)
    if args.profile:
        config = apply_profile(config, args.profile, explicit)
    return config.validate()


def show_profiles() -> None:
    console.print(Rule("Available test profiles"))
    for key, profile in PROFILES.items():
        console.print(f"\n[bold]{profile.name}[/bold] ({key})")
        console.print(f"   {profile.description}")
        console.print(f"   Requests: {profile.requests:,}")
        console.print(f"   Concurrency: {profile.concurrency} users")
        console.print(f"   RPS: {profile.rps} req/sec")
        console.print(f"   Duration: ~{profile.duration_min} minutes")
        console.print(f"   Think time: {profile.think_time_ms}ms")
    console.print("\nUsage: pacegen --url http://your-site.example --profile normal\n")


def show_warning() -> None:
    console.print(Rule("[bold red]LEGAL WARNING - READ CAREFULLY[/bold red]"))
    console.print("This tool is for testing YOUR OWN infrastructure only.")
    console.print("Using it against systems you don't own or operate is illegal.")
    console.print("You must have explicit written authorization before testing any system.")
    console.print(Rule())


def confirm() -> bool:
    answer = console.input("\nDo you own this system and have authorization to test it? (yes/no): ")
    return answer.strip().lower() == "yes"


def show_test_info(config: RunConfig, profile: str | None) -> None:
    console.print(Rule("Starting load test"))
    if profile:
        selected = PROFILES[profile]
        console.print(f"Profile:            {selected.name} - {selected.description}")
    console.print(f"Target:             {config.url}")
    console.print(f"Total requests:     {config.requests:,}")
    console.print(f"Concurrent users:   {config.concurrency}")
    console.print(f"Max RPS:            {config.rps} req/sec")
    console.print(f"Think time:         {config.think_time_sec * 1000:.0f}ms")
    console.print(f"Timeout:            {config.timeout_sec:g}s")
    estimate = config.estimated_duration_sec
    console.print(f"Estimated duration: {estimate:.1f} seconds ({estimate / 60:.1f} minutes)")
    console.print(Rule())


async def _run(config: RunConfig) -> StatsSnapshot:
    run = LoadRun(config, console=console)
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, run.cancel)
        interruptible = True
    except NotImplementedError:
        logger.debug("SIGINT handler unsupported on this platform; Ctrl-C aborts the run")
        interruptible = False
    try:
        return await run.run()
    finally:
        if interruptible:
            loop.remove_signal_handler(signal.SIGINT)


def configure_logging(level: str) -> RichHandler:
    # same console as the live progress display
    handler = RichHandler(console=console, show_path=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler])
    return handler


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.list_profiles:
        show_profiles()
        return 0
    if not args.url and not args.profile:
        show_profiles()
        console.print("Use pacegen --help for more configuration information.")
        return 1

    try:
        config = build_config(args)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        return 1

    show_warning()
    if not args.authorized and not confirm():
        console.print("Load test cancelled.")
        return 0

    show_test_info(config, args.profile)
    snapshot = asyncio.run(_run(config))
    render_report(snapshot, config, console)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
