"""
Pytest configuration and fixtures.

Nothing here launches a browser: the UI session, elements, candidates and
the clock are in-memory fakes. The fake clock's sleep() advances time
instantly, so budget arithmetic is checked without real waiting.
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import pytest

from fare_funnel.detection.strategies import DetectionStrategy
from fare_funnel.exceptions import ElementNotInteractableError
from fare_funnel.interfaces.candidate import ICandidate, IScopeControl
from fare_funnel.interfaces.ui import ElementQuery, IUiElement, IUiSession, QueryLike
from fare_funnel.utils.waiting import Clock


# ─────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────

class FakeClock(Clock):
    """Clock whose sleep() jumps time forward without waiting."""

    def __init__(self, start: float = 0.0):
        self.time = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.time

    async def sleep(self, seconds: float) -> None:
        seconds = max(0.0, seconds)
        self.sleeps.append(seconds)
        self.time += seconds
        await asyncio.sleep(0)


@dataclass(frozen=True)
class ScriptedStrategy(DetectionStrategy):
    """
    Strategy with a scripted outcome measured on a FakeClock.

    Succeeds after ``takes_s`` when ``succeeds`` and the budget allows it;
    otherwise burns its whole budget and reports a miss.
    """
    clock: Optional[FakeClock] = field(default=None, compare=False)
    succeeds: bool = False
    takes_s: float = 0.0
    raises: Optional[Exception] = field(default=None, compare=False)
    calls: List[float] = field(default_factory=list, compare=False)

    async def attempt(self, session, budget_s: float) -> bool:
        self.calls.append(budget_s)
        if self.raises is not None:
            raise self.raises
        if self.succeeds and self.takes_s <= budget_s:
            await self.clock.sleep(self.takes_s)
            return True
        await self.clock.sleep(budget_s)
        return False


@dataclass(frozen=True)
class HangingStrategy(DetectionStrategy):
    """Strategy that never returns on its own."""

    async def attempt(self, session, budget_s: float) -> bool:
        await asyncio.sleep(3600)
        return True


class FakeElement(IUiElement):
    """In-memory element with optional parent and children."""

    def __init__(
        self,
        text: str = "",
        visible: bool = True,
        parent: Optional["FakeElement"] = None,
        children: Optional[Iterable["FakeElement"]] = None,
        click_error: Optional[Exception] = None,
        text_error: Optional[Exception] = None,
    ):
        self._text = text
        self._visible = visible
        self._parent = parent
        self.children = list(children or [])
        self._click_error = click_error
        self._text_error = text_error
        self.clicks = 0
        self.click_timeouts: List[Optional[int]] = []

    async def text(self) -> str:
        if self._text_error is not None:
            raise self._text_error
        return self._text

    async def click(self, timeout_ms: Optional[int] = None) -> None:
        self.click_timeouts.append(timeout_ms)
        if self._click_error is not None:
            raise self._click_error
        self.clicks += 1

    async def is_visible(self) -> bool:
        return self._visible

    def parent(self, levels: int = 1) -> IUiElement:
        element = self
        for _ in range(levels):
            if element._parent is None:
                return FakeElement("")
            element = element._parent
        return element

    async def query_all(self, query: ElementQuery) -> List[IUiElement]:
        return list(self.children)


def _queries(query: QueryLike) -> List[ElementQuery]:
    return [query] if isinstance(query, ElementQuery) else list(query)


class FakeSession(IUiSession):
    """
    In-memory session.

    ``visible`` holds the queries whose first match is visible; ``elements``
    maps a query to what query_all()/first() resolve it to.
    """

    def __init__(self, url: str = "https://example.com/", clock: Optional[FakeClock] = None):
        self._url = url
        self.clock = clock
        self.visible: set = set()
        self.elements: Dict[ElementQuery, List[FakeElement]] = {}
        self.visits: List[str] = []

    @property
    def url(self) -> str:
        return self._url

    async def goto(self, url: str) -> None:
        self.visits.append(url)
        self._url = url

    def add(self, query: ElementQuery, *elements: FakeElement, visible: bool = True) -> None:
        self.elements.setdefault(query, []).extend(elements)
        if visible:
            self.visible.add(query)

    async def is_visible(self, query: QueryLike) -> bool:
        return any(q in self.visible for q in _queries(query))

    async def wait_visible(self, query: QueryLike, timeout_ms: int) -> bool:
        return await self.is_visible(query)

    async def wait_for_url(self, pattern: str, timeout_ms: int) -> bool:
        return re.search(pattern, self._url, re.IGNORECASE) is not None

    async def query_all(self, query: ElementQuery) -> List[IUiElement]:
        return list(self.elements.get(query, []))

    def first(self, query: QueryLike) -> IUiElement:
        for q in _queries(query):
            if self.elements.get(q):
                return self.elements[q][0]
        return FakeElement(
            visible=False,
            click_error=ElementNotInteractableError("No element", selector=str(query)),
        )


class FakeCandidate(ICandidate):
    """Candidate with fixed text that counts its activations."""

    def __init__(
        self,
        label: str,
        text: str = "",
        context: Optional[str] = None,
        options: Optional[List["FakeCandidate"]] = None,
        text_error: Optional[Exception] = None,
    ):
        self.label = label
        self.context = context
        self._text = text
        self._options = options or []
        self._text_error = text_error
        self.activations = 0

    async def text(self) -> str:
        if self._text_error is not None:
            raise self._text_error
        return self._text

    async def activate(self) -> None:
        self.activations += 1

    async def sub_options(self) -> List[ICandidate]:
        return list(self._options)


class FakeScopeControl(IScopeControl):
    """Scope control that counts its activations."""

    def __init__(self, error: Optional[Exception] = None):
        self.activations = 0
        self._error = error

    async def activate(self) -> None:
        self.activations += 1
        if self._error is not None:
            raise self._error


# ─────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────

@pytest.fixture
def settings():
    """Provide test settings."""
    from fare_funnel.config import Settings, BrowserSettings, DetectionSettings

    return Settings(
        browser=BrowserSettings(headless=True),
        detection=DetectionSettings(default_budget_s=30),
    )


@pytest.fixture
def detection_settings():
    """Detection settings with the default overlay windows."""
    from fare_funnel.config import DetectionSettings
    return DetectionSettings()


@pytest.fixture
def clock():
    """Provide a fake clock starting at t=0."""
    return FakeClock()


@pytest.fixture
def session(clock):
    """Provide an empty fake UI session."""
    return FakeSession(clock=clock)


@pytest.fixture
def make_strategy(clock):
    """Factory for scripted strategies bound to the fake clock."""
    def factory(name, timeout_s, succeeds=False, takes_s=0.0, raises=None):
        return ScriptedStrategy(
            name=name,
            timeout_s=timeout_s,
            clock=clock,
            succeeds=succeeds,
            takes_s=takes_s,
            raises=raises,
        )
    return factory


@pytest.fixture
def hanging_strategy():
    """Factory for strategies that never finish on their own."""
    def factory(name="hangs", timeout_s=5.0):
        return HangingStrategy(name=name, timeout_s=timeout_s)
    return factory


@pytest.fixture
def make_candidate():
    """Factory for fake candidates."""
    return FakeCandidate


@pytest.fixture
def make_element():
    """Factory for fake elements."""
    return FakeElement


@pytest.fixture
def make_scope_control():
    """Factory for fake scope controls."""
    return FakeScopeControl


@pytest.fixture
def session_class():
    """The fake session class, for tests that subclass it."""
    return FakeSession
