from __future__ import annotations

from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Container, Mapping
from urllib.parse import urlparse

from pacegen.errors import ConfigError


@dataclass(frozen=True, slots=True)
class Profile:
    name: str
    description: str
    requests: int
    concurrency: int
    rps: int
    duration_min: int
    think_time_ms: int


PROFILES: Mapping[str, Profile] = MappingProxyType(
    {
        "normal": Profile(
            name="Normal Traffic",
            description="Regular daily traffic pattern",
            requests=10_000,
            concurrency=50,
            rps=100,
            duration_min=10,
            think_time_ms=500,
        ),
        "peak": Profile(
            name="Peak Hours",
            description="Evening rush hour traffic",
            requests=100_000,
            concurrency=200,
            rps=500,
            duration_min=30,
            think_time_ms=300,
        ),
        "flash-sale": Profile(
            name="Flash Sale",
            description="High-intensity flash sale event",
            requests=500_000,
            concurrency=1000,
            rps=2000,
            duration_min=60,
            think_time_ms=100,
        ),
        "stress": Profile(
            name="Stress Test",
            description="Maximum load to find breaking point",
            requests=1_000_000,
            concurrency=2000,
            rps=5000,
            duration_min=120,
            think_time_ms=50,
        ),
    }
)


@dataclass(frozen=True, slots=True)
class RunConfig:
    url: str
    requests: int = 100
    rps: int = 10
    concurrency: int = 5
    timeout_sec: float = 30.0
    think_time_sec: float = 0.1
    show_progress: bool = True
    seed: int | None = None

    def validate(self) -> RunConfig:
        if not self.url:
            raise ConfigError("URL is required (use --url)")
        parsed = urlparse(self.url)
        if parsed.scheme not in ("http", "https"):
            raise ConfigError("URL must use http or https scheme")
        if not parsed.netloc:
            raise ConfigError(f"invalid URL: {self.url!r} has no host")
        if self.requests < 1:
            raise ConfigError("requests must be at least 1")
        if self.rps < 1:
            raise ConfigError("RPS must be at least 1")
        if self.concurrency < 1:
            raise ConfigError("concurrency must be at least 1")
        if self.timeout_sec <= 0:
            raise ConfigError("timeout must be positive")
        if self.think_time_sec < 0:
            raise ConfigError("think time cannot be negative")
        return self

    @property
    def estimated_duration_sec(self) -> float:
        return self.requests / self.rps

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "url": self.url,
            "requests": self.requests,
            "rps": self.rps,
            "concurrency": self.concurrency,
            "timeout_sec": self.timeout_sec,
            "think_time_sec": self.think_time_sec,
            "show_progress": self.show_progress,
            "seed": self.seed,
        }


def apply_profile(config: RunConfig, profile_key: str, explicit: Container[str] = ()) -> RunConfig:
    """Fill in a profile's values, leaving fields named in ``explicit`` untouched."""
    profile = PROFILES.get(profile_key)
    if profile is None:
        msg = f"unknown profile {profile_key!r}; use --list-profiles to see available profiles"
        raise ConfigError(msg)
    overrides: dict[str, Any] = {}
    if "requests" not in explicit:
        overrides["requests"] = profile.requests
    if "concurrency" not in explicit:
        overrides["concurrency"] = profile.concurrency
    if "rps" not in explicit:
        overrides["rps"] = profile.rps
    if "think_time_sec" not in explicit:
        overrides["think_time_sec"] = profile.think_time_ms / 1000.0
    return replace(config, **overrides)
