"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Exceptions raised while preloading page data.
"""

from __future__ import annotations

from typing import Any

from .types import Location


class RedirectSignal(Exception):
    """
    Control-flow signal raised when a navigation must continue elsewhere.

    Not a failure: the current page context is discarded, never reported.
    """

    def __init__(self, location: Location) -> None:
        super().__init__(f"Redirect to {location.url}")
        self.location = location


class PreloadError(Exception):
    """Base class for preload failures."""


class TaskRejection(PreloadError):
    """Raised when a load awaitable settles without a result or an error of its own."""


class ConfigurationError(PreloadError):
    """Raised when a load method returns something that cannot be awaited."""

    def __init__(self, component: str, returned: Any) -> None:
        super().__init__(
            f"Preload method of '{component}' must return an awaitable "
            f"or a list of awaitables. Got: {returned!r}"
        )
        self.component = component
        self.returned = returned


class HandlerContractViolation(PreloadError):
    """Raised when a server-side error handler neither redirected nor raised."""
