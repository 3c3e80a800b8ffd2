"""
Candidate Collectors - Turn a rendered results page into candidates.

Two layouts are supported:

1. Fare section: an expanded result shows fare cards, each with a
   "Select" button; the price sits in the button's card (parent, or
   grandparent when the parent carries no price).
2. Result card: one card whose fare tiers are separate buttons/links;
   each tier is a priced sub-option of the card.

Everything here works against IUiSession / IUiElement, so it is exercised
in tests with in-memory fakes.
"""

import logging
import re
from typing import List, Literal, Optional

from fare_funnel.config.settings import SelectionSettings
from fare_funnel.detection.resolver import StateSignalResolver
from fare_funnel.detection.strategies import visible
from fare_funnel.detection.targets import TargetState, fare_section_ready
from fare_funnel.exceptions import ElementNotInteractableError
from fare_funnel.interfaces.candidate import ICandidate, IScopeControl
from fare_funnel.interfaces.ui import ElementQuery, IUiElement, IUiSession
from fare_funnel.selection.models import CandidateSource, ScopeFilter, SelectionOutcome
from fare_funnel.selection.pricing import parse_price
from fare_funnel.selection.selector import OptionRankingSelector

logger = logging.getLogger(__name__)


CabinOption = Literal["Economy", "Premium Economy", "Business Class"]
CABIN_OPTIONS = ("Economy", "Premium Economy", "Business Class")

SELECT_BUTTON = ElementQuery.role("button", name=r"^Select$")
LOOSE_SELECT_BUTTON = ElementQuery.role("button", name=r"select")
FARE_OPTION = ElementQuery.css("button, a", has_text=r"\$|CAD|USD|price|fare|basic|standard|flex|select")
RESULT_CARDS = (
    ElementQuery.css('[data-testid*="flight-card"], [data-testid*="result-card"], [class*="flight-card"]'),
    ElementQuery.role("article"),
    ElementQuery.role("listitem"),
)
FIRST_RESULT_ROW = (
    ElementQuery.css('[data-testid*="flight"], [data-testid*="result"], [class*="flight-result"]'),
    ElementQuery.role("listitem"),
    ElementQuery.role("article"),
)
EXPAND_TRIGGER = (
    ElementQuery.role("button", name=r"select a fare below|select fare|choose fare"),
    ElementQuery.text(r"select a fare below"),
)


class ElementCandidate(ICandidate):
    """An action element whose own text is the option text."""

    def __init__(
        self,
        element: IUiElement,
        label: str,
        context: Optional[str] = None,
        click_timeout_ms: int = 10000,
    ):
        self._element = element
        self.label = label
        self.context = context
        self._click_timeout_ms = click_timeout_ms

    async def text(self) -> str:
        return await self._element.text()

    async def activate(self) -> None:
        await self._element.click(timeout_ms=self._click_timeout_ms)


class FareButtonCandidate(ElementCandidate):
    """A "Select" button priced from the card around it."""

    async def text(self) -> str:
        card_text = await self._read(self._element.parent(1))
        if parse_price(card_text) is not None:
            return card_text
        outer_text = await self._read(self._element.parent(2))
        return outer_text or card_text

    async def _read(self, element: IUiElement) -> str:
        try:
            return await element.text()
        except Exception as e:
            logger.debug(f"{self.label}: could not read card text: {e}")
            return ""


class ResultCardCandidate(ICandidate):
    """A result card whose fare tiers are separately priced sub-options."""

    def __init__(self, card: IUiElement, label: str = "result card", click_timeout_ms: int = 10000):
        self._card = card
        self.label = label
        self.context = None
        self._click_timeout_ms = click_timeout_ms

    async def text(self) -> str:
        return await self._card.text()

    async def sub_options(self) -> List[ICandidate]:
        elements = await self._card.query_all(FARE_OPTION)
        return [
            ElementCandidate(element, f"{self.label} option #{i + 1}", click_timeout_ms=self._click_timeout_ms)
            for i, element in enumerate(elements)
        ]

    async def activate(self) -> None:
        # Positional fallback: the card's first fare option, else the card itself
        options = await self.sub_options()
        if options:
            await options[0].activate()
        else:
            await self._card.click(timeout_ms=self._click_timeout_ms)


class TabScopeControl(IScopeControl):
    """Clicks the tab (or button) named after a cabin."""

    def __init__(self, session: IUiSession, cabin: str, click_timeout_ms: int = 10000):
        self._session = session
        self._cabin = cabin
        self._click_timeout_ms = click_timeout_ms

    async def activate(self) -> None:
        pattern = cabin_pattern(self._cabin)
        control = self._session.first((
            ElementQuery.role("tab", name=pattern),
            ElementQuery.role("button", name=pattern),
        ))
        await control.click(timeout_ms=self._click_timeout_ms)


# ─────────────────────────────────────────────────────────────
# Collection
# ─────────────────────────────────────────────────────────────

def cabin_pattern(cabin: str) -> str:
    """
    Whitespace-tolerant, case-insensitive name pattern for a cabin tab.

    "Economy" excludes names mentioning "premium" so it never lands on the
    Premium Economy tab.
    """
    body = r"\s*".join(re.escape(word) for word in cabin.split())
    pattern = rf"\b{body}\b"
    if cabin.strip().lower() == "economy":
        pattern = rf"^(?!.*\bpremium\b).*{pattern}"
    return pattern


async def collect_fare_candidates(
    session: IUiSession,
    context: Optional[str] = None,
    click_timeout_ms: int = 10000,
) -> List[ICandidate]:
    """
    One candidate per "Select" button currently rendered.

    Falls back to any button with "select" in its name when no button is
    named exactly "Select".
    """
    buttons = await session.query_all(SELECT_BUTTON)
    if not buttons:
        buttons = await session.query_all(LOOSE_SELECT_BUTTON)
    return [
        FareButtonCandidate(button, f"fare #{i + 1}", context=context, click_timeout_ms=click_timeout_ms)
        for i, button in enumerate(buttons)
    ]


def fare_candidate_source(
    session: IUiSession,
    context: Optional[str] = None,
    click_timeout_ms: int = 10000,
) -> CandidateSource:
    """Deferred collect_fare_candidates(), for sampling after a scope switch."""
    async def source() -> List[ICandidate]:
        return await collect_fare_candidates(session, context, click_timeout_ms)
    return source


def first_result_card(session: IUiSession) -> IUiElement:
    """The first flight result card on the page."""
    return session.first(RESULT_CARDS)


def first_result_row(session: IUiSession) -> IUiElement:
    """The first clickable result row, which opens that flight's fare section."""
    return session.first(FIRST_RESULT_ROW)


async def collect_card_options(
    session: IUiSession,
    card: Optional[IUiElement] = None,
    click_timeout_ms: int = 10000,
) -> List[ICandidate]:
    """The given (default: first) result card as a candidate with fare-tier sub-options."""
    card = card or first_result_card(session)
    return [ResultCardCandidate(card, click_timeout_ms=click_timeout_ms)]


def cabin_scope(
    session: IUiSession,
    cabin: str,
    budget_s: Optional[float] = None,
    click_timeout_ms: int = 10000,
) -> ScopeFilter:
    """
    Scope that switches to a cabin tab and is confirmed once a "Select"
    button is visible.
    """
    confirmation = TargetState.of(
        f"{cabin} fares",
        visible("select-button", SELECT_BUTTON, timeout_s=budget_s or 10),
    )
    return ScopeFilter(
        label=cabin,
        control=TabScopeControl(session, cabin, click_timeout_ms),
        confirmation=confirmation,
        budget_s=budget_s,
    )


# ─────────────────────────────────────────────────────────────
# Fare section flow
# ─────────────────────────────────────────────────────────────

async def expand_first_result(
    resolver: StateSignalResolver,
    settings: Optional[SelectionSettings] = None,
) -> None:
    """
    Click the first result to open its fare section and wait for the fare
    tiers to render. A "Select a fare below" trigger, when shown, is clicked
    as a second expand step.
    """
    settings = settings or SelectionSettings()
    session = resolver.session

    await first_result_row(session).click(timeout_ms=settings.click_timeout_ms)
    await resolver.await_state(fare_section_ready(), settings.fare_section_budget_s)

    trigger = session.first(EXPAND_TRIGGER)
    try:
        if not await trigger.is_visible():
            return
    except Exception as e:
        logger.debug(f"Expand trigger visibility unknown: {e}")
        return
    try:
        await trigger.click(timeout_ms=5000)
    except ElementNotInteractableError as e:
        logger.debug(f"Expand trigger not clickable: {e}")
    await resolver.await_state(fare_section_ready(), settings.fare_section_budget_s)


async def select_cheapest_fare(
    resolver: StateSignalResolver,
    cabin: Optional[str] = None,
    settings: Optional[SelectionSettings] = None,
) -> SelectionOutcome:
    """
    Within the open fare section, switch to a cabin and select its
    cheapest fare.

    Args:
        resolver: Resolver bound to the session
        cabin: Cabin to restrict to (default from settings)
        settings: Selection settings

    Returns:
        SelectionOutcome of the fare that was selected
    """
    settings = settings or SelectionSettings()
    cabin = cabin or settings.default_cabin
    session = resolver.session

    scope = cabin_scope(session, cabin, settings.scope_budget_s, settings.click_timeout_ms)
    selector = OptionRankingSelector(resolver, settings)
    return await selector.select_cheapest(
        fare_candidate_source(session, context=cabin, click_timeout_ms=settings.click_timeout_ms),
        scope=scope,
    )
