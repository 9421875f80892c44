"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Protocol interfaces for the collaborators a navigator consumes.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol, Sequence, runtime_checkable

from .types import Location, LoadArguments, MatchResult, MatchedRoute, PreloadStats


@runtime_checkable
class Cancellable(Protocol):
    """
    Capability implemented by load awaitables that support cooperative cancellation.

    ``asyncio.Future`` and ``asyncio.Task`` satisfy it; plain coroutines do not.
    """

    def cancel(self) -> Any:
        """Request cancellation; the awaitable settles on its own schedule."""
        ...


class LoadMethod(Protocol):
    """Component load method."""

    def __call__(
        self,
        arguments: LoadArguments,
    ) -> Awaitable[Any] | Sequence[Awaitable[Any]]:
        """
        Start loading the data a component needs.

        Args:
            arguments: Dispatch, state accessor, location and parameters.

        Returns:
            One awaitable, or a list of awaitables settled together.
        """
        ...


class RouteMatcher(Protocol):
    """Route resolution collaborator."""

    def match(
        self,
        routes: Any,
        history: Any,
        location: Location,
    ) -> Awaitable[MatchResult]:
        """
        Resolve ``location`` against the routing table.

        Args:
            routes: Routing table (already produced when given as a factory).
            history: Whatever ``get_history()`` returned.
            location: Navigation target.

        Returns:
            Redirect target or matched router state.
        """
        ...


class SkipPolicy(Protocol):
    """Decides how many leading routes may skip preloading on the client."""

    def skip_count(
        self,
        previous: Sequence[MatchedRoute],
        current: Sequence[MatchedRoute],
        *,
        previous_query: str,
        current_query: str,
    ) -> int:
        """Return the number of leading routes whose data is still current."""
        ...


class ErrorHandler(Protocol):
    """Application hook called when preloading fails."""

    def __call__(
        self,
        error: BaseException,
        context: Any,
    ) -> Any | Awaitable[Any]:
        """
        Handle one preload failure.

        On the server the handler must either call ``context.redirect`` or
        raise; returning normally is a contract violation.
        """
        ...


Dispatch = Callable[[Any], Any]
StatsReporter = Callable[[PreloadStats], None]
NavigateHook = Callable[[str], None]
