"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Navigation sessions and the single active-session slot of a runtime context.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Literal

from ..preload.types import Location

logger = logging.getLogger("navload.session")

SessionStatus = Literal[
    "created",
    "pending",
    "finished",
    "failed",
    "cancelled",
]

_TERMINAL: frozenset[str] = frozenset({"finished", "failed", "cancelled"})


@dataclass(slots=True, eq=False)
class Session:
    """
    Mutable cancellation and status record for one navigation.

    ``cancel()`` is legal at any point of the lifecycle; before execution
    starts it only raises the flag, afterwards it also reaches the attached
    cancel handle. Once terminal the record no longer changes.
    """

    location: Location
    pending: bool = False
    cancelled: bool = False
    error: BaseException | None = None
    status: SessionStatus = "created"
    _cancel_handle: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def terminal(self) -> bool:
        return self.status in _TERMINAL

    def attach(self, handle: Callable[[], None]) -> None:
        """Register the callable that cancels in-flight work."""
        self._cancel_handle = handle

    def start(self) -> None:
        if self.terminal:
            return
        self.pending = True
        self.status = "pending"

    def cancel(self) -> bool:
        """Request cancellation. Returns ``False`` when nothing changed."""
        if self.cancelled or self.terminal:
            return False
        self.cancelled = True
        if self._cancel_handle is not None:
            self._cancel_handle()
        return True

    def settle(self, status: SessionStatus, error: BaseException | None = None) -> None:
        if self.terminal:
            return
        self.pending = False
        self.status = status
        if error is not None:
            self.error = error


class SessionManager:
    """Owns the one active session of a runtime context."""

    def __init__(self) -> None:
        self._active: Session | None = None

    @property
    def active(self) -> Session | None:
        return self._active

    def begin(
        self,
        location: Location,
        *,
        on_superseded: Callable[[Session], None] | None = None,
    ) -> Session:
        """
        Install a new active session, cancelling the previous one.

        Runs synchronously so two navigations can never both be active.
        ``on_superseded`` is called once for a previous session that was
        still loading and had not been cancelled yet.
        """
        previous = self._active
        session = Session(location=location)
        self._active = session

        if previous is not None and not previous.terminal:
            loading = previous.pending and not previous.cancelled
            if previous.cancel():
                logger.info(
                    "Navigation to %s superseded by %s",
                    previous.location.url,
                    location.url,
                )
            if loading and on_superseded is not None:
                on_superseded(previous)
        return session

    def release(self, session: Session) -> None:
        """Clear the slot if ``session`` is still the active one."""
        if self._active is session:
            self._active = None
