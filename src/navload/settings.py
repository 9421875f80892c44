"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Navigator settings and explicit environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import get_args

from .core.runtime.engine import BatchFailurePolicy

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True, slots=True)
class NavigatorSettings:
    """
    Explicit settings for one navigator.

    Attributes:
        server: Running inside server-side rendering.
        batch_failure_policy: ``keep`` leaves siblings of a failed batch task
            running; ``cancel`` cancels those still pending.
        skip_unchanged_routes: Client-side, skip loads of leading routes whose
            component and parameters did not change.
        query_affects_innermost_only: Assume query parameters matter only to
            the innermost route when skipping.
    """

    server: bool = False
    batch_failure_policy: BatchFailurePolicy = "keep"
    skip_unchanged_routes: bool = True
    query_affects_innermost_only: bool = True

    def __post_init__(self) -> None:
        if self.batch_failure_policy not in get_args(BatchFailurePolicy):
            raise ValueError(
                f"Unknown batch failure policy '{self.batch_failure_policy}'"
            )

    @staticmethod
    def from_env() -> "NavigatorSettings":
        """Load settings from environment variables."""
        return NavigatorSettings(
            server=_env_flag("NAVLOAD_SERVER", False),
            batch_failure_policy=os.getenv("NAVLOAD_BATCH_FAILURE_POLICY", "keep"),  # type: ignore[arg-type]
            skip_unchanged_routes=_env_flag("NAVLOAD_SKIP_UNCHANGED_ROUTES", True),
            query_affects_innermost_only=_env_flag(
                "NAVLOAD_QUERY_AFFECTS_INNERMOST_ONLY", True
            ),
        )
