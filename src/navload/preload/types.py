"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Preload descriptors, chain stages, navigation actions and status events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, ClassVar, Mapping, TypeAlias
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field

LoadTask: TypeAlias = Callable[[], Awaitable[Any]]


class Location(BaseModel):
    """
    Target of a navigation.

    Attributes:
        pathname: URL path, always starting with ``/``.
        search: Query string without the leading ``?``.
        hash: Fragment without the leading ``#``.
    """

    model_config = ConfigDict(frozen=True)

    pathname: str = "/"
    search: str = ""
    hash: str = ""

    @property
    def url(self) -> str:
        """Relative URL for this location."""
        url = self.pathname
        if self.search:
            url += f"?{self.search}"
        if self.hash:
            url += f"#{self.hash}"
        return url

    @classmethod
    def parse(cls, url: str) -> "Location":
        """Build a location from a relative or absolute URL."""
        parts = urlsplit(url)
        return cls(
            pathname=parts.path or "/",
            search=parts.query,
            hash=parts.fragment,
        )


class PreloadTimings(BaseModel):
    """Timings (milliseconds) measured for one navigation."""

    preload: float


class PreloadStats(BaseModel):
    """Payload handed to the stats reporter after a finished preload."""

    url: str
    route: str
    time: PreloadTimings = Field(default_factory=lambda: PreloadTimings(preload=0.0))


@dataclass(frozen=True, slots=True)
class LoadOptions:
    """
    Options declared next to a component's load method.

    Attributes:
        blocking: When ``False`` the task may run concurrently with the
            following non-blocking tasks.
        client: When ``True`` the task never runs during server-side rendering.
    """

    blocking: bool = True
    client: bool = False

    @staticmethod
    def coerce(value: "LoadOptions | Mapping[str, Any] | None") -> "LoadOptions":
        """Accept options given as an instance, a mapping or nothing."""
        if value is None:
            return LoadOptions()
        if isinstance(value, LoadOptions):
            return value
        return LoadOptions(
            blocking=value.get("blocking", True) is not False,
            client=bool(value.get("client", False)),
        )


@dataclass(frozen=True, slots=True)
class Descriptor:
    """One load task paired with its options."""

    task: LoadTask
    options: LoadOptions = field(default_factory=LoadOptions)
    name: str = ""


@dataclass(frozen=True, slots=True)
class Single:
    """Stage that runs one descriptor."""

    descriptor: Descriptor


@dataclass(frozen=True, slots=True)
class Batch:
    """Stage that runs its descriptors concurrently."""

    descriptors: tuple[Descriptor, ...]


Stage: TypeAlias = Single | Batch


@dataclass(frozen=True, slots=True)
class PreloadChain:
    """Ordered stages planned for one navigation."""

    stages: tuple[Stage, ...] = ()

    def __len__(self) -> int:
        return len(self.stages)

    def __bool__(self) -> bool:
        return bool(self.stages)

    @property
    def task_count(self) -> int:
        count = 0
        for stage in self.stages:
            count += 1 if isinstance(stage, Single) else len(stage.descriptors)
        return count


@dataclass(frozen=True, slots=True)
class MatchedRoute:
    """
    One matched route level, outermost first.

    Attributes:
        component: Page component; may expose ``preload``/``preload_options``.
        params: Parameters resolved for this route level only.
        path: Route path pattern of this level, e.g. ``"user/:id"``.
    """

    component: Any
    params: Mapping[str, str] = field(default_factory=dict)
    path: str = ""


@dataclass(frozen=True, slots=True)
class RouterState:
    """Matched router state handed back by the route matcher."""

    routes: list[MatchedRoute]
    location: Location
    params: Mapping[str, str] = field(default_factory=dict)
    route_path: str = ""


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Route matcher result: either a redirect or a matched state."""

    redirect: Location | None = None
    state: RouterState | None = None


@dataclass(frozen=True, slots=True)
class NavigationAction:
    """
    Request to navigate to ``location`` after preloading its data.

    Attributes:
        location: Navigation target.
        initial: First client-side pass right after a server-rendered page.
        navigate: Whether to change history once data is loaded.
        redirect: Replace the current history entry instead of pushing.
    """

    type: ClassVar[str] = "navload/preload"

    location: Location
    initial: bool = False
    navigate: bool = True
    redirect: bool = False


@dataclass(frozen=True, slots=True)
class PreloadStarted:
    type: ClassVar[str] = "navload/preload started"


@dataclass(frozen=True, slots=True)
class PreloadFinished:
    type: ClassVar[str] = "navload/preload finished"


@dataclass(frozen=True, slots=True)
class PreloadFailed:
    type: ClassVar[str] = "navload/preload failed"

    error: BaseException


@dataclass(frozen=True, slots=True)
class HistoryPush:
    type: ClassVar[str] = "navload/history push"

    location: Location


@dataclass(frozen=True, slots=True)
class HistoryReplace:
    type: ClassVar[str] = "navload/history replace"

    location: Location


@dataclass(frozen=True, slots=True)
class LoadArguments:
    """
    Arguments passed to every component load method.

    Attributes:
        dispatch: Load-time dispatch; navigating through it cancels this load.
        get_state: Store state accessor.
        location: Navigation target.
        parameters: All route parameters of the matched state.
        helpers: Application-provided extras (API clients and the like).
    """

    dispatch: Callable[[Any], Any]
    get_state: Callable[[], Any]
    location: Location
    parameters: Mapping[str, str] = field(default_factory=dict)
    helpers: Mapping[str, Any] = field(default_factory=dict)
