"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Preload contracts: descriptors, options, actions and errors.
"""

from .decorator import PRELOAD_METHOD_NAME, PRELOAD_OPTIONS_NAME, preload
from .descriptors import (
    DescriptorListBuilder,
    NavigationHistory,
    NoSkipPolicy,
    PrefixSkipPolicy,
    RouteSnapshot,
    invoke_load,
)
from .errors import (
    ConfigurationError,
    HandlerContractViolation,
    PreloadError,
    RedirectSignal,
    TaskRejection,
)
from .protocols import Cancellable, ErrorHandler, LoadMethod, RouteMatcher, SkipPolicy
from .types import (
    Batch,
    Descriptor,
    HistoryPush,
    HistoryReplace,
    LoadArguments,
    LoadOptions,
    Location,
    MatchedRoute,
    MatchResult,
    NavigationAction,
    PreloadChain,
    PreloadFailed,
    PreloadFinished,
    PreloadStarted,
    PreloadStats,
    PreloadTimings,
    RouterState,
    Single,
    Stage,
)

__all__ = [
    "PRELOAD_METHOD_NAME",
    "PRELOAD_OPTIONS_NAME",
    "preload",
    "DescriptorListBuilder",
    "NavigationHistory",
    "RouteSnapshot",
    "PrefixSkipPolicy",
    "NoSkipPolicy",
    "invoke_load",
    "RedirectSignal",
    "PreloadError",
    "TaskRejection",
    "ConfigurationError",
    "HandlerContractViolation",
    "Cancellable",
    "ErrorHandler",
    "LoadMethod",
    "RouteMatcher",
    "SkipPolicy",
    "Location",
    "LoadOptions",
    "LoadArguments",
    "Descriptor",
    "Single",
    "Batch",
    "Stage",
    "PreloadChain",
    "MatchedRoute",
    "RouterState",
    "MatchResult",
    "NavigationAction",
    "PreloadStarted",
    "PreloadFinished",
    "PreloadFailed",
    "HistoryPush",
    "HistoryReplace",
    "PreloadStats",
    "PreloadTimings",
]
