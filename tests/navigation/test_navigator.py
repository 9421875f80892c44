from __future__ import annotations

import asyncio
import gc
import logging
from dataclasses import dataclass, field

import pytest

from navload import (
    Cancelled,
    Fail,
    HandlerContractViolation,
    Location,
    MatchedRoute,
    MatchResult,
    NavigationAction,
    Navigator,
    NavigatorSettings,
    Proceed,
    Redirect,
    RouterState,
    preload,
)
from navload.preload import (
    HistoryPush,
    HistoryReplace,
    PreloadFailed,
    PreloadFinished,
    PreloadStarted,
    PreloadStats,
)


def run_async(coro):
    return asyncio.run(coro)


@dataclass
class _Slow:
    entry: object
    delay: float = 0.01


class _Matcher:
    """
    Matches pathnames against a dict of route lists or redirect targets.

    An exception entry is raised; ``_Slow`` delays its entry.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[object, object, Location]] = []

    async def match(self, routes, history, location: Location) -> MatchResult:
        self.calls.append((routes, history, location))
        await asyncio.sleep(0)
        entry = routes[location.pathname]
        if isinstance(entry, _Slow):
            await asyncio.sleep(entry.delay)
            entry = entry.entry
        if isinstance(entry, BaseException):
            raise entry
        if isinstance(entry, Location):
            return MatchResult(redirect=entry)
        return MatchResult(
            state=RouterState(
                routes=entry,
                location=location,
                params={},
                route_path=location.pathname,
            )
        )


@dataclass
class _Sink:
    events: list = field(default_factory=list)

    def __call__(self, event):
        self.events.append(event)
        return event

    def of(self, kind) -> list:
        return [event for event in self.events if isinstance(event, kind)]

    def status(self) -> list[str]:
        names = {
            PreloadStarted: "started",
            PreloadFinished: "finished",
            PreloadFailed: "failed",
        }
        return [names[type(e)] for e in self.events if type(e) in names]


def _page(load, *, blocking: bool = True, client: bool = False):
    return preload(load, blocking=blocking, client=client)(type("Page", (), {}))


def _go(path: str, **kwargs) -> NavigationAction:
    return NavigationAction(location=Location.parse(path), **kwargs)


def _navigator(routes, *, server: bool = False, **kwargs):
    sink = _Sink()
    navigator = Navigator(
        _Matcher(),
        routes,
        dispatch=sink,
        settings=NavigatorSettings(server=server),
        **kwargs,
    )
    return navigator, sink


async def _loaded(value=None, delay: float = 0.0):
    await asyncio.sleep(delay)
    return value


class _Plain:
    pass


def test_nothing_to_preload_navigates_without_status_events():
    navigator, sink = _navigator({"/about": [MatchedRoute(component=_Plain)]})

    outcome = run_async(navigator.navigate(_go("/about")))

    assert isinstance(outcome, Proceed)
    assert sink.status() == []
    assert sink.events == [HistoryPush(location=Location.parse("/about"))]


def test_successful_preload_emits_events_reports_stats_and_navigates():
    loaded: list[str] = []
    stats: list[PreloadStats] = []
    navigated: list[str] = []

    def load(arguments):
        loaded.append(arguments.location.url)
        return _loaded(delay=0.01)

    navigator, sink = _navigator(
        {"/users/1": [MatchedRoute(component=_page(load))]},
        report_stats=stats.append,
        on_navigate=navigated.append,
    )

    outcome = run_async(navigator.navigate(_go("/users/1?tab=posts")))

    assert isinstance(outcome, Proceed)
    assert loaded == ["/users/1?tab=posts"]
    assert navigated == ["/users/1?tab=posts"]
    assert sink.status() == ["started", "finished"]
    assert sink.of(HistoryPush) == [HistoryPush(location=Location.parse("/users/1?tab=posts"))]
    assert len(stats) == 1
    assert stats[0].route == "/users/1"
    assert stats[0].url == "/users/1?tab=posts"
    assert stats[0].time.preload >= 5
    assert navigator.sessions.active is None


def test_navigate_flags_control_history_and_navigate_hook():
    navigated: list[str] = []
    routes = {"/a": [MatchedRoute(component=_page(lambda arguments: _loaded()))]}
    navigator, sink = _navigator(routes, on_navigate=navigated.append)

    async def scenario():
        await navigator.navigate(_go("/a", initial=True, navigate=False))
        await navigator.navigate(_go("/a", redirect=True))

    run_async(scenario())

    assert navigated == ["/a"]
    assert sink.of(HistoryPush) == []
    assert sink.of(HistoryReplace) == [HistoryReplace(location=Location.parse("/a"))]


def test_server_never_touches_history():
    routes = {"/a": [MatchedRoute(component=_page(lambda arguments: _loaded()))]}
    navigator, sink = _navigator(routes, server=True)

    outcome = run_async(navigator.navigate(_go("/a")))

    assert isinstance(outcome, Proceed)
    assert sink.status() == ["started", "finished"]
    assert sink.of(HistoryPush) == []


def test_newer_navigation_supersedes_pending_one():
    finished_slow: list[str] = []

    async def slow_load():
        await asyncio.sleep(0.05)
        finished_slow.append("slow")

    routes = {
        "/slow": [MatchedRoute(component=_page(lambda arguments: slow_load()))],
        "/fast": [MatchedRoute(component=_page(lambda arguments: _loaded()))],
    }
    navigator, sink = _navigator(routes)

    async def scenario():
        first = navigator.dispatch(_go("/slow"))
        await asyncio.sleep(0.01)
        second = navigator.dispatch(_go("/fast"))
        return await asyncio.gather(first, second)

    first_outcome, second_outcome = run_async(scenario())

    assert isinstance(first_outcome, Cancelled)
    assert isinstance(second_outcome, Proceed)
    assert finished_slow == ["slow"]
    assert sink.status() == ["started", "finished", "started", "finished"]
    assert sink.of(HistoryPush) == [HistoryPush(location=Location.parse("/fast"))]


def test_client_failure_without_handler_logs_and_returns_fail(caplog):
    boom = RuntimeError("api down")

    async def failing():
        raise boom

    routes = {"/a": [MatchedRoute(component=_page(lambda arguments: failing()))]}
    navigator, sink = _navigator(routes)

    with caplog.at_level(logging.ERROR, logger="navload.navigation"):
        outcome = run_async(navigator.navigate(_go("/a")))

    assert isinstance(outcome, Fail)
    assert outcome.error is boom
    assert outcome.kind == "task_rejection"
    assert sink.status() == ["started", "failed"]
    assert sink.of(PreloadFailed)[0].error is boom
    assert sink.of(HistoryPush) == []
    assert "Preload failed for /a" in caplog.text


def test_server_failure_without_handler_is_reraised():
    async def failing():
        raise RuntimeError("api down")

    routes = {"/a": [MatchedRoute(component=_page(lambda arguments: failing()))]}
    navigator, sink = _navigator(routes, server=True)

    with pytest.raises(RuntimeError, match="api down"):
        run_async(navigator.navigate(_go("/a")))

    assert sink.status() == ["started", "failed"]


def test_configuration_error_is_reported_as_failure():
    routes = {"/a": [MatchedRoute(component=_page(lambda arguments: "not awaitable"))]}
    navigator, sink = _navigator(routes)

    outcome = run_async(navigator.navigate(_go("/a")))

    assert isinstance(outcome, Fail)
    assert outcome.kind == "configuration_error"
    assert sink.status() == ["started", "failed"]


def _failing_routes():
    async def failing():
        raise RuntimeError("api down")

    return {
        "/a": [MatchedRoute(component=_page(lambda arguments: failing()))],
        "/error": [MatchedRoute(component=_Plain)],
    }


def test_server_handler_that_returns_violates_contract():
    handled: list[str] = []

    def handler(error, context):
        handled.append(context.url)

    navigator, _ = _navigator(_failing_routes(), server=True, error_handler=handler)

    with pytest.raises(HandlerContractViolation):
        run_async(navigator.navigate(_go("/a?x=1")))

    assert handled == ["/a?x=1"]


def test_client_handler_that_returns_is_not_checked():
    contexts = []

    async def handler(error, context):
        contexts.append(context)

    navigator, _ = _navigator(_failing_routes(), error_handler=handler)

    outcome = run_async(navigator.navigate(_go("/a")))

    assert isinstance(outcome, Fail)
    assert contexts[0].path == "/a"
    assert contexts[0].server is False


def test_server_handler_redirect_becomes_redirect_outcome():
    def handler(error, context):
        context.redirect("/error")

    navigator, _ = _navigator(_failing_routes(), server=True, error_handler=handler)

    outcome = run_async(navigator.navigate(_go("/a")))

    assert outcome == Redirect(location=Location.parse("/error"))


def test_server_handler_rethrow_propagates():
    def handler(error, context):
        raise LookupError("translated") from error

    navigator, _ = _navigator(_failing_routes(), server=True, error_handler=handler)

    with pytest.raises(LookupError, match="translated"):
        run_async(navigator.navigate(_go("/a")))


def test_client_handler_redirect_starts_new_navigation():
    def handler(error, context):
        context.redirect("/error")

    navigator, sink = _navigator(_failing_routes(), error_handler=handler)

    async def scenario():
        outcome = await navigator.navigate(_go("/a"))
        await asyncio.sleep(0.01)
        return outcome

    outcome = run_async(scenario())

    assert isinstance(outcome, Fail)
    assert sink.of(HistoryPush) == [HistoryPush(location=Location.parse("/error"))]


def test_route_redirect_on_client_replaces_history_with_target():
    routes = {
        "/old": Location.parse("/new"),
        "/new": [MatchedRoute(component=_page(lambda arguments: _loaded()))],
    }
    navigator, sink = _navigator(routes)

    async def scenario():
        outcome = await navigator.navigate(_go("/old"))
        await asyncio.sleep(0.01)
        return outcome

    outcome = run_async(scenario())

    assert outcome == Redirect(location=Location.parse("/new"))
    assert sink.of(HistoryReplace) == [HistoryReplace(location=Location.parse("/new"))]
    assert sink.status() == ["started", "finished"]


def test_route_redirect_on_server_is_returned_as_data():
    routes = {"/old": Location.parse("/new")}
    navigator, sink = _navigator(routes, server=True)

    outcome = run_async(navigator.navigate(_go("/old")))

    assert outcome == Redirect(location=Location.parse("/new"))
    assert sink.events == []


def test_navigation_from_load_method_on_server_redirects_without_failure_event():
    def load(arguments):
        arguments.dispatch(_go("/login"))
        return _loaded()

    routes = {"/private": [MatchedRoute(component=_page(load))]}
    navigator, sink = _navigator(routes, server=True)

    outcome = run_async(navigator.navigate(_go("/private")))

    assert outcome == Redirect(location=Location.parse("/login"))
    assert sink.status() == ["started"]


def test_navigation_from_load_method_on_client_cancels_current_preload():
    async def redirecting(arguments):
        arguments.dispatch(_go("/login"))
        await asyncio.sleep(0)

    routes = {
        "/private": [MatchedRoute(component=_page(lambda arguments: redirecting(arguments)))],
        "/login": [MatchedRoute(component=_Plain)],
    }
    navigator, sink = _navigator(routes)

    async def scenario():
        outcome = await navigator.navigate(_go("/private"))
        await asyncio.sleep(0.01)
        return outcome

    outcome = run_async(scenario())

    assert isinstance(outcome, Cancelled)
    assert sink.status() == ["started", "finished"]
    assert sink.of(HistoryPush) == [HistoryPush(location=Location.parse("/login"))]


def test_request_events_from_load_methods_are_marked():
    def load(arguments):
        arguments.dispatch({"type": "fetch", "promise": lambda: None})
        arguments.dispatch({"type": "plain"})
        return _loaded()

    navigator, sink = _navigator({"/a": [MatchedRoute(component=_page(load))]})

    run_async(navigator.navigate(_go("/a")))

    dicts = [event for event in sink.events if isinstance(event, dict)]
    assert dicts[0]["preloading"] is True
    assert "preloading" not in dicts[1]


def test_routes_factory_helpers_and_history_are_passed_through():
    seen = {}

    def load(arguments):
        seen["helpers"] = dict(arguments.helpers)
        seen["state"] = arguments.get_state()
        return _loaded()

    def routes(dispatch, get_state):
        seen["factory_state"] = get_state()
        return {"/a": [MatchedRoute(component=_page(load))]}

    navigator, _ = _navigator(
        routes,
        get_state=lambda: {"user": "ann"},
        get_history=lambda: "memory-history",
        helpers={"api": "client"},
    )

    run_async(navigator.navigate(_go("/a")))

    assert seen == {
        "factory_state": {"user": "ann"},
        "helpers": {"api": "client"},
        "state": {"user": "ann"},
    }
    assert navigator.matcher.calls[0][1] == "memory-history"


def test_stats_reporter_failure_is_logged_not_raised(caplog):
    def broken_reporter(stats):
        raise RuntimeError("sink offline")

    routes = {"/a": [MatchedRoute(component=_page(lambda arguments: _loaded()))]}
    navigator, sink = _navigator(routes, report_stats=broken_reporter)

    with caplog.at_level(logging.ERROR, logger="navload.navigation"):
        outcome = run_async(navigator.navigate(_go("/a")))

    assert isinstance(outcome, Proceed)
    assert "Stats reporter failed for /a" in caplog.text


def test_non_blocking_components_load_concurrently_through_navigator():
    starts: dict[str, float] = {}

    def loader(name: str):
        async def run():
            starts[name] = asyncio.get_running_loop().time()
            await asyncio.sleep(0.03)

        return lambda arguments: run()

    routes = {
        "/dash": [
            MatchedRoute(component=_page(loader("chart"), blocking=False)),
            MatchedRoute(component=_page(loader("feed"), blocking=False)),
        ]
    }
    navigator, sink = _navigator(routes)

    outcome = run_async(navigator.navigate(_go("/dash")))

    assert isinstance(outcome, Proceed)
    assert abs(starts["chart"] - starts["feed"]) < 0.02
    assert sink.status() == ["started", "finished"]


def test_client_matcher_failure_is_logged_and_returns_fail(caplog):
    navigator, sink = _navigator({"/broken": RuntimeError("no route table")})

    with caplog.at_level(logging.ERROR, logger="navload.navigation"):
        outcome = run_async(navigator.navigate(_go("/broken")))

    assert isinstance(outcome, Fail)
    assert str(outcome.error) == "no route table"
    assert sink.status() == []
    assert sink.of(HistoryPush) == []
    assert navigator.sessions.active is None
    assert "Preload failed for /broken" in caplog.text


def test_server_matcher_failure_is_reraised():
    navigator, sink = _navigator({"/broken": RuntimeError("no route table")}, server=True)

    with pytest.raises(RuntimeError, match="no route table"):
        run_async(navigator.navigate(_go("/broken")))

    assert sink.events == []
    assert navigator.sessions.active is None


def test_navigation_superseded_while_matching_never_loads():
    loaded: list[str] = []

    def load(arguments):
        loaded.append(arguments.location.url)
        return _loaded()

    routes = {
        "/a": _Slow([MatchedRoute(component=_page(load))], delay=0.02),
        "/b": [MatchedRoute(component=_page(lambda arguments: _loaded()))],
    }
    navigator, sink = _navigator(routes)

    async def scenario():
        first = navigator.dispatch(_go("/a"))
        await asyncio.sleep(0.005)
        second = navigator.dispatch(_go("/b"))
        return await asyncio.gather(first, second)

    first_outcome, second_outcome = run_async(scenario())

    assert first_outcome == Cancelled(location=Location.parse("/a"))
    assert isinstance(second_outcome, Proceed)
    assert loaded == []
    assert sink.status() == ["started", "finished"]
    assert sink.of(HistoryPush) == [HistoryPush(location=Location.parse("/b"))]


def test_failure_of_superseded_navigation_is_not_handled():
    handled: list[str] = []

    def handler(error, context):
        handled.append(context.url)
        context.redirect("/error")

    routes = {
        "/stale": _Slow(RuntimeError("stale matcher failed"), delay=0.01),
        "/fresh": [MatchedRoute(component=_page(lambda arguments: _loaded(delay=0.03)))],
        "/error": [MatchedRoute(component=_Plain)],
    }
    navigator, sink = _navigator(routes, error_handler=handler)

    async def scenario():
        stale = navigator.dispatch(_go("/stale"))
        await asyncio.sleep(0.001)
        fresh = navigator.dispatch(_go("/fresh"))
        outcomes = await asyncio.gather(stale, fresh)
        await asyncio.sleep(0.01)
        return outcomes

    stale_outcome, fresh_outcome = run_async(scenario())

    assert stale_outcome == Cancelled(location=Location.parse("/stale"))
    assert isinstance(fresh_outcome, Proceed)
    assert handled == []
    assert sink.of(HistoryPush) == [HistoryPush(location=Location.parse("/fresh"))]
    assert navigator.in_flight == 0


def test_failed_follow_up_navigation_is_logged_and_released(caplog):
    def handler(error, context):
        raise error

    routes = {
        "/old": Location.parse("/new"),
        "/new": RuntimeError("matcher down"),
    }
    navigator, _ = _navigator(routes, error_handler=handler)
    unhandled: list[dict] = []

    async def scenario():
        asyncio.get_running_loop().set_exception_handler(
            lambda loop, context: unhandled.append(context)
        )
        outcome = await navigator.navigate(_go("/old"))
        assert navigator.in_flight == 1
        await asyncio.sleep(0.01)
        gc.collect()
        return outcome

    with caplog.at_level(logging.ERROR, logger="navload.navigation"):
        outcome = run_async(scenario())

    assert outcome == Redirect(location=Location.parse("/new"))
    assert navigator.in_flight == 0
    assert unhandled == []
    assert "Navigation to /new failed" in caplog.text
