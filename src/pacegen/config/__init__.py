from __future__ import annotations

from pacegen.config.models import PROFILES, Profile, RunConfig, apply_profile

__all__ = [
    "PROFILES",
    "Profile",
    "RunConfig",
    "apply_profile",
]
