"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Navigator: preloads page data before letting a navigation complete.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Callable, Mapping

from ..core.outcomes import (
    Cancelled,
    ErrorContext,
    Fail,
    Outcome,
    OutcomeClassifier,
    Proceed,
    Redirect,
)
from ..core.runtime.chain import ChainBuilder
from ..core.runtime.engine import ExecutionEngine
from ..core.session import Session, SessionManager
from ..preload.descriptors import (
    DescriptorListBuilder,
    NavigationHistory,
    NoSkipPolicy,
    PrefixSkipPolicy,
)
from ..preload.errors import RedirectSignal
from ..preload.protocols import (
    Dispatch,
    ErrorHandler,
    NavigateHook,
    RouteMatcher,
    StatsReporter,
)
from ..preload.types import (
    HistoryPush,
    HistoryReplace,
    LoadArguments,
    Location,
    NavigationAction,
    PreloadFailed,
    PreloadFinished,
    PreloadStarted,
    PreloadStats,
    PreloadTimings,
    RouterState,
)
from ..settings import NavigatorSettings
from .dispatch import loading_dispatch, redirecting_dispatch

logger = logging.getLogger("navload.navigation")


def _as_location(target: Location | str) -> Location:
    return target if isinstance(target, Location) else Location.parse(target)


class Navigator:
    """
    Navigation middleware for one runtime context.

    ``dispatch`` intercepts ``NavigationAction`` and forwards every other
    event to the downstream sink. A navigation matches the target location,
    loads the data declared by the matched components and then either moves
    history forward, redirects or reports the failure.

    One navigator owns the active-session slot and the previously loaded
    routes of its context: one per browser tab, one per server request.
    """

    def __init__(
        self,
        matcher: RouteMatcher,
        routes: Any,
        *,
        dispatch: Dispatch,
        get_state: Callable[[], Any] | None = None,
        get_history: Callable[[], Any] | None = None,
        settings: NavigatorSettings | None = None,
        error_handler: ErrorHandler | None = None,
        helpers: Mapping[str, Any] | None = None,
        report_stats: StatsReporter | None = None,
        on_navigate: NavigateHook | None = None,
        history: NavigationHistory | None = None,
        sessions: SessionManager | None = None,
        engine: ExecutionEngine | None = None,
    ) -> None:
        self.settings = settings or NavigatorSettings()
        self.server = self.settings.server
        self.matcher = matcher
        self.routes = routes
        self.get_state = get_state or (lambda: None)
        self.get_history = get_history or (lambda: None)
        self.helpers = dict(helpers or {})
        self.report_stats = report_stats
        self.on_navigate = on_navigate
        self.sessions = sessions or SessionManager()
        self.engine = engine or ExecutionEngine(
            batch_failure_policy=self.settings.batch_failure_policy
        )
        self.chain_builder = ChainBuilder()
        self.descriptors = DescriptorListBuilder(
            server=self.server,
            history=history,
            skip_policy=(
                PrefixSkipPolicy(
                    query_affects_innermost_only=self.settings.query_affects_innermost_only
                )
                if self.settings.skip_unchanged_routes
                else NoSkipPolicy()
            ),
        )
        self.classifier = OutcomeClassifier(server=self.server, error_handler=error_handler)
        self._navigations: set[asyncio.Future[Outcome]] = set()
        self._sink = dispatch
        self._dispatch = redirecting_dispatch(self.dispatch, server=self.server)

    def dispatch(self, event: Any) -> Any:
        """
        Middleware entry point.

        Navigation actions start a navigation and return its asyncio task;
        the session is installed before this method returns. The navigator
        holds the task until it is done and logs a failure nobody awaited.
        """
        if isinstance(event, NavigationAction):
            session = self._begin(event)
            task = asyncio.ensure_future(self._run(event, session))
            self._navigations.add(task)
            task.add_done_callback(partial(self._navigation_done, event))
            return task
        return self._sink(event)

    @property
    def in_flight(self) -> int:
        """Number of dispatched navigations that have not completed yet."""
        return len(self._navigations)

    async def navigate(self, action: NavigationAction) -> Outcome:
        """Navigate and wait for the outcome."""
        session = self._begin(action)
        return await self._run(action, session)

    def _navigation_done(
        self, action: NavigationAction, task: asyncio.Future[Outcome]
    ) -> None:
        self._navigations.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Navigation to %s failed", action.location.url, exc_info=error)

    def _begin(self, action: NavigationAction) -> Session:
        if self.on_navigate is not None and not action.initial:
            self.on_navigate(action.location.url)
        return self.sessions.begin(
            action.location,
            on_superseded=lambda _: self._dispatch(PreloadFinished()),
        )

    async def _run(self, action: NavigationAction, session: Session) -> Outcome:
        try:
            return await self._preload(action, session)
        except Exception as error:
            if session.cancelled:
                session.settle("cancelled", error)
                logger.debug(
                    "Discarded failure of superseded navigation to %s: %r",
                    action.location.url,
                    error,
                )
                return Cancelled(location=action.location)
            session.settle("failed", error)
            return await self.classifier.handle_failure(error, self._error_context(action))
        finally:
            if not session.terminal:
                session.settle("cancelled" if session.cancelled else "finished")
            self.sessions.release(session)

    async def _preload(self, action: NavigationAction, session: Session) -> Outcome:
        location = action.location
        match = await self.matcher.match(
            self._routing_table(), self.get_history(), location
        )
        if session.cancelled:
            return Cancelled(location=location)

        if match.redirect is not None:
            return self._follow_redirect(match.redirect)

        state = match.state
        if state is None:
            self._proceed(action)
            return Proceed(location=location)

        arguments = LoadArguments(
            dispatch=loading_dispatch(self._dispatch, session, server=self.server),
            get_state=self.get_state,
            location=state.location,
            parameters=state.params,
            helpers=self.helpers,
        )
        chain = self.chain_builder.build(
            self.descriptors.build(state, arguments, initial=action.initial)
        )
        if not chain:
            self._proceed(action)
            return Proceed(location=location)

        execution = self.engine.prepare(chain, session)
        self._dispatch(PreloadStarted())
        logger.debug(
            "Preloading %s: %d task(s) in %d stage(s)",
            location.url,
            chain.task_count,
            len(chain),
        )
        result = await execution.run()

        if (
            result.status == "failed"
            and result.error is not None
            and not isinstance(result.error, RedirectSignal)
        ):
            self._dispatch(PreloadFailed(error=result.error))

        outcome = self.classifier.classify(result, location)
        if isinstance(outcome, Fail):
            raise outcome.error
        if isinstance(outcome, Proceed):
            self._dispatch(PreloadFinished())
            self._report(state, result.elapsed_ms)
            self._proceed(action)
        elif isinstance(outcome, Cancelled):
            logger.debug("Discarded cancelled preload of %s", location.url)
        return outcome

    def _routing_table(self) -> Any:
        if callable(self.routes):
            return self.routes(self._dispatch, self.get_state)
        return self.routes

    def _follow_redirect(self, target: Location) -> Redirect:
        if not self.server:
            self._dispatch(NavigationAction(location=target, redirect=True))
        return Redirect(location=target)

    def _proceed(self, action: NavigationAction) -> None:
        if self.server or action.navigate is False:
            return
        if action.redirect:
            self._dispatch(HistoryReplace(location=action.location))
        else:
            self._dispatch(HistoryPush(location=action.location))

    def _report(self, state: RouterState, elapsed_ms: float) -> None:
        if self.report_stats is None:
            return
        stats = PreloadStats(
            url=state.location.url,
            route=state.route_path,
            time=PreloadTimings(preload=elapsed_ms),
        )
        try:
            self.report_stats(stats)
        except Exception:
            logger.exception("Stats reporter failed for %s", stats.url)

    def _error_context(self, action: NavigationAction) -> ErrorContext:
        return ErrorContext(
            path=action.location.pathname,
            url=action.location.url,
            redirect=lambda to: self._dispatch(
                NavigationAction(location=_as_location(to))
            ),
            dispatch=self._dispatch,
            get_state=self.get_state,
            server=self.server,
        )
