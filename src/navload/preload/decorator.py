"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Decorator that declares what a page component loads before it is shown.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from .protocols import LoadMethod
from .types import LoadOptions

PRELOAD_METHOD_NAME = "preload"
PRELOAD_OPTIONS_NAME = "preload_options"

C = TypeVar("C")


def preload(
    method: LoadMethod,
    *,
    blocking: bool = True,
    client: bool = False,
) -> Callable[[C], C]:
    """
    Attach a load method and its options to a page component.

    Usage::

        @preload(load_user, blocking=False)
        class UserPage:
            ...

    Args:
        method: Called with ``LoadArguments``; returns an awaitable or a list
            of awaitables.
        blocking: When ``False`` the load runs concurrently with neighbouring
            non-blocking loads.
        client: When ``True`` the load is skipped during server rendering.
    """

    options = LoadOptions(blocking=blocking, client=client)

    def decorate(component: C) -> C:
        value: Any = staticmethod(method) if isinstance(component, type) else method
        setattr(component, PRELOAD_METHOD_NAME, value)
        setattr(component, PRELOAD_OPTIONS_NAME, options)
        return component

    return decorate


def load_method_of(component: Any) -> LoadMethod | None:
    """Return the component's load method, if it declares one."""
    if component is None:
        return None
    method = getattr(component, PRELOAD_METHOD_NAME, None)
    return method if callable(method) else None


def load_options_of(component: Any) -> LoadOptions:
    return LoadOptions.coerce(getattr(component, PRELOAD_OPTIONS_NAME, None))
