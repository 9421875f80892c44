"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Descriptor list builder: turns matched routes into ordered load descriptors.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Sequence

from .decorator import load_method_of, load_options_of
from .errors import ConfigurationError
from .protocols import LoadMethod, SkipPolicy
from .types import Descriptor, LoadArguments, MatchedRoute, RouterState


@dataclass(frozen=True, slots=True)
class RouteSnapshot:
    """Routes (and query string) loaded by the previous client-side navigation."""

    routes: tuple[MatchedRoute, ...]
    query: str = ""


@dataclass(slots=True)
class NavigationHistory:
    """
    Caller-owned memory of the previously loaded routes.

    One instance belongs to one runtime context (one browser tab); it is never
    shared between server-side requests.
    """

    previous: RouteSnapshot | None = None

    def record(self, routes: Sequence[MatchedRoute], query: str) -> None:
        self.previous = RouteSnapshot(routes=tuple(routes), query=query)

    def clear(self) -> None:
        self.previous = None


class PrefixSkipPolicy:
    """
    Skip leading routes whose component and parameters did not change.

    The innermost route is never skipped. Query parameters are assumed to
    affect only the innermost route unless ``query_affects_innermost_only``
    is ``False``, in which case any query change disables skipping.
    """

    def __init__(self, *, query_affects_innermost_only: bool = True) -> None:
        self.query_affects_innermost_only = query_affects_innermost_only

    def skip_count(
        self,
        previous: Sequence[MatchedRoute],
        current: Sequence[MatchedRoute],
        *,
        previous_query: str,
        current_query: str,
    ) -> int:
        if not self.query_affects_innermost_only and previous_query != current_query:
            return 0
        limit = min(len(current) - 1, len(previous))
        index = 0
        while (
            index < limit
            and previous[index].component is current[index].component
            and dict(previous[index].params) == dict(current[index].params)
        ):
            index += 1
        return index


class NoSkipPolicy:
    """Always preload every matched route."""

    def skip_count(
        self,
        previous: Sequence[MatchedRoute],
        current: Sequence[MatchedRoute],
        *,
        previous_query: str,
        current_query: str,
    ) -> int:
        return 0


async def _rejected(error: BaseException) -> Any:
    raise error


async def _resolved(value: Any) -> Any:
    return value


def invoke_load(method: LoadMethod, arguments: LoadArguments, name: str) -> Awaitable[Any]:
    """
    Call one load method and normalize what it returned into one awaitable.

    Lists are gathered, with plain items resolving to themselves. A
    synchronous raise or a non-awaitable result becomes an awaitable that
    fails, so the chain sees a rejection.
    """
    try:
        result = method(arguments)
    except Exception as exc:
        return _rejected(exc)

    if isinstance(result, (list, tuple)):
        return asyncio.gather(
            *(item if inspect.isawaitable(item) else _resolved(item) for item in result)
        )
    if inspect.isawaitable(result):
        return result
    return _rejected(ConfigurationError(name, result))


def component_name(component: Any) -> str:
    name = getattr(component, "__qualname__", None) or getattr(component, "__name__", None)
    return name or type(component).__qualname__


class DescriptorListBuilder:
    """Build the ordered, environment-filtered descriptor list for one navigation."""

    def __init__(
        self,
        *,
        server: bool,
        history: NavigationHistory | None = None,
        skip_policy: SkipPolicy | None = None,
    ) -> None:
        self.server = server
        self.history = history if history is not None else NavigationHistory()
        self.skip_policy: SkipPolicy = skip_policy or PrefixSkipPolicy()

    def build(
        self,
        state: RouterState,
        arguments: LoadArguments,
        *,
        initial: bool,
    ) -> list[Descriptor]:
        """
        Return descriptors for ``state``, outermost route first.

        Args:
            state: Matched router state.
            arguments: Arguments every load method receives.
            initial: First client-side pass after a server-rendered page;
                only client-only loads run.
        """
        routes = list(state.routes)
        if not self.server:
            routes = self._unchanged_routes_skipped(routes, state.location.search)

        descriptors: list[Descriptor] = []
        for route in routes:
            method = load_method_of(route.component)
            if method is None:
                continue
            options = load_options_of(route.component)
            if options.client and self.server:
                continue
            if initial and not options.client:
                continue
            name = component_name(route.component)
            descriptors.append(
                Descriptor(
                    task=partial(invoke_load, method, arguments, name),
                    options=options,
                    name=name,
                )
            )
        return descriptors

    def _unchanged_routes_skipped(
        self, routes: list[MatchedRoute], query: str
    ) -> list[MatchedRoute]:
        previous = self.history.previous
        skip = 0
        if previous is not None and routes:
            skip = self.skip_policy.skip_count(
                previous.routes,
                routes,
                previous_query=previous.query,
                current_query=query,
            )
            skip = max(0, min(skip, len(routes) - 1))
        self.history.record(routes, query)
        return routes[skip:]
