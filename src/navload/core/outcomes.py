"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Navigation outcomes and the redirect/error classifier.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal, TypeAlias

from ..preload.errors import ConfigurationError, HandlerContractViolation, RedirectSignal
from ..preload.protocols import ErrorHandler
from ..preload.types import Location
from .runtime.engine import ChainResult

logger = logging.getLogger("navload.navigation")

FailureKind = Literal["task_rejection", "configuration_error"]


@dataclass(frozen=True, slots=True)
class Proceed:
    """Data is loaded; navigation went (or may go) ahead."""

    location: Location
    elapsed_ms: float | None = None


@dataclass(frozen=True, slots=True)
class Redirect:
    """Navigation continues at ``location`` instead."""

    location: Location


@dataclass(frozen=True, slots=True)
class Fail:
    """Preloading failed and the failure was handled without raising."""

    error: BaseException
    kind: FailureKind = "task_rejection"


@dataclass(frozen=True, slots=True)
class Cancelled:
    """A newer navigation took over; nothing was reported."""

    location: Location


Outcome: TypeAlias = Proceed | Redirect | Fail | Cancelled


def failure_kind(error: BaseException) -> FailureKind:
    if isinstance(error, ConfigurationError):
        return "configuration_error"
    return "task_rejection"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """
    Context handed to a custom error handler.

    Attributes:
        path: Path of the page that failed to load.
        url: Full relative URL of that page.
        redirect: Navigate elsewhere; raises ``RedirectSignal`` on the server.
        dispatch: Action sink.
        get_state: Store state accessor.
        server: Whether this runs during server-side rendering.
    """

    path: str
    url: str
    redirect: Callable[[Location | str], Any]
    dispatch: Callable[[Any], Any]
    get_state: Callable[[], Any]
    server: bool


class OutcomeClassifier:
    """Maps chain results and failures onto outcomes per environment."""

    def __init__(self, *, server: bool, error_handler: ErrorHandler | None = None) -> None:
        self.server = server
        self.error_handler = error_handler

    def classify(self, result: ChainResult, location: Location) -> Outcome:
        """Turn a settled chain into an outcome; failures are not handled here."""
        if isinstance(result.error, RedirectSignal):
            return Redirect(location=result.error.location)
        if result.status == "cancelled":
            return Cancelled(location=location)
        if result.status == "failed" and result.error is not None:
            return Fail(error=result.error, kind=failure_kind(result.error))
        return Proceed(location=location, elapsed_ms=result.elapsed_ms)

    async def handle_failure(self, error: BaseException, context: ErrorContext) -> Outcome:
        """
        Apply the failure policy.

        Without a handler the server re-raises and the client logs. With a
        handler, a redirect wins; on the server any other normal return is a
        contract violation.
        """
        if isinstance(error, RedirectSignal):
            return Redirect(location=error.location)

        if self.error_handler is None:
            if self.server:
                raise error
            logger.error("Preload failed for %s", context.url, exc_info=error)
            return Fail(error=error, kind=failure_kind(error))

        try:
            handled = self.error_handler(error, context)
            if inspect.isawaitable(handled):
                await handled
        except RedirectSignal as signal:
            return Redirect(location=signal.location)

        if self.server:
            raise HandlerContractViolation(
                "Preload error handler must either redirect or re-raise the error "
                "on the server side"
            ) from error
        return Fail(error=error, kind=failure_kind(error))
