from __future__ import annotations


class PacegenError(Exception):
    """Base class for errors raised by pacegen."""


class ConfigError(PacegenError, ValueError):
    """Raised when a run configuration or profile is invalid."""


class QueueClosedError(PacegenError):
    """Raised when a permit is offered to a closed queue."""
