"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Dispatch wrappers installed around the action sink while navigating.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, is_dataclass, replace
from typing import Any

from ..core.session import Session
from ..preload.errors import RedirectSignal
from ..preload.protocols import Dispatch
from ..preload.types import NavigationAction, PreloadFinished


def redirecting_dispatch(dispatch: Dispatch, *, server: bool) -> Dispatch:
    """
    Dispatch that turns navigations into ``RedirectSignal`` on the server.

    Server rendering cannot follow a second navigation, so it aborts the
    current render instead.
    """

    def wrapped(event: Any) -> Any:
        if server and isinstance(event, NavigationAction):
            raise RedirectSignal(event.location)
        return dispatch(event)

    return wrapped


def mark_preloading(event: Any) -> Any:
    """Flag request events issued from a load method so they are not error-handled twice."""
    if isinstance(event, Mapping):
        if callable(event.get("promise")):
            return {**event, "preloading": True}
        return event
    if (
        is_dataclass(event)
        and not isinstance(event, type)
        and callable(getattr(event, "promise", None))
        and any(item.name == "preloading" for item in fields(event))
    ):
        return replace(event, preloading=True)
    return event


def loading_dispatch(dispatch: Dispatch, session: Session, *, server: bool) -> Dispatch:
    """
    Dispatch handed to load methods.

    A navigation dispatched from inside a load method discards the current
    session before it is forwarded. On the server it raises ``RedirectSignal``
    right away so the signal reaches the chain as the task's own failure.
    """

    def wrapped(event: Any) -> Any:
        if isinstance(event, NavigationAction):
            if server:
                raise RedirectSignal(event.location)
            if session.cancel():
                dispatch(PreloadFinished())
        return dispatch(mark_preloading(event))

    return wrapped
