"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

navload preloads the data a page needs before a navigation completes.

Quick start::

    from navload import Navigator, NavigationAction, Location, preload

    @preload(load_user)
    class UserPage:
        ...

    navigator = Navigator(matcher, routes, dispatch=store.dispatch)
    outcome = await navigator.navigate(
        NavigationAction(location=Location.parse("/users/1"))
    )
"""

from .core import (
    Cancelled,
    ChainBuilder,
    ErrorContext,
    ExecutionEngine,
    Fail,
    Outcome,
    Proceed,
    Redirect,
    Session,
    SessionManager,
)
from .navigation import Navigator
from .preload import (
    ConfigurationError,
    HandlerContractViolation,
    LoadArguments,
    LoadOptions,
    Location,
    MatchedRoute,
    MatchResult,
    NavigationAction,
    NavigationHistory,
    PreloadError,
    RedirectSignal,
    RouterState,
    TaskRejection,
    preload,
)
from .settings import NavigatorSettings

__all__ = [
    "Navigator",
    "NavigatorSettings",
    "NavigationAction",
    "NavigationHistory",
    "Location",
    "LoadArguments",
    "LoadOptions",
    "MatchedRoute",
    "MatchResult",
    "RouterState",
    "preload",
    "ChainBuilder",
    "ExecutionEngine",
    "Session",
    "SessionManager",
    "Outcome",
    "Proceed",
    "Redirect",
    "Fail",
    "Cancelled",
    "ErrorContext",
    "RedirectSignal",
    "PreloadError",
    "TaskRejection",
    "ConfigurationError",
    "HandlerContractViolation",
]
