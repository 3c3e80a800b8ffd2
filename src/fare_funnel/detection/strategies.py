"""
Detection Strategies - Independent, bounded ways of observing a state signal.

A strategy answers one narrow question ("is a heading matching P visible?",
"does the URL match R?") within a time budget. Strategies are immutable
and stateless; the resolver owns ordering, budgets and cancellation.

Kinds:
- ElementVisibleStrategy: any of a set of element queries becomes visible
- UrlPatternStrategy: the current URL matches a regex
- AnyOfStrategy: several child strategies raced, first success wins
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

from fare_funnel.exceptions import ConfigurationError
from fare_funnel.interfaces.ui import ElementQuery, IUiSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionStrategy(ABC):
    """
    A named predicate with its own timeout.

    Attributes:
        name: Identifier used in outcomes, errors and logs
        timeout_s: Longest this strategy is allowed to wait on its own
    """
    name: str
    timeout_s: float

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("Detection strategy needs a name")
        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"Strategy '{self.name}' timeout must be positive",
                {"timeout_s": self.timeout_s},
            )

    @abstractmethod
    async def attempt(self, session: IUiSession, budget_s: float) -> bool:
        """
        Try to observe the signal.

        Args:
            session: UI session to observe (read-only use)
            budget_s: Seconds this attempt may wait

        Returns:
            True if the signal was observed within the budget
        """
        ...

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True)
class ElementVisibleStrategy(DetectionStrategy):
    """Signal: the first match of any of ``queries`` is visible."""
    queries: Tuple[ElementQuery, ...] = ()

    def __post_init__(self):
        super().__post_init__()
        if not self.queries:
            raise ConfigurationError(f"Strategy '{self.name}' has no element queries")

    async def attempt(self, session: IUiSession, budget_s: float) -> bool:
        return await session.wait_visible(self.queries, timeout_ms=int(budget_s * 1000))

    def describe(self) -> str:
        return f"{self.name}: " + " | ".join(q.describe() for q in self.queries)


@dataclass(frozen=True)
class UrlPatternStrategy(DetectionStrategy):
    """Signal: the current URL matches ``pattern`` (regex, case-insensitive)."""
    pattern: str = ""

    def __post_init__(self):
        super().__post_init__()
        if not self.pattern:
            raise ConfigurationError(f"Strategy '{self.name}' has no URL pattern")

    async def attempt(self, session: IUiSession, budget_s: float) -> bool:
        return await session.wait_for_url(self.pattern, timeout_ms=int(budget_s * 1000))

    def describe(self) -> str:
        return f"{self.name}: url ~ /{self.pattern}/i"


@dataclass(frozen=True)
class AnyOfStrategy(DetectionStrategy):
    """
    Signal: any child strategy succeeds. Children are raced concurrently
    against the same budget; the remaining ones are cancelled on success.
    """
    strategies: Tuple[DetectionStrategy, ...] = ()

    def __post_init__(self):
        super().__post_init__()
        if not self.strategies:
            raise ConfigurationError(f"Strategy '{self.name}' has no child strategies")

    async def attempt(self, session: IUiSession, budget_s: float) -> bool:
        tasks = [
            asyncio.ensure_future(child.attempt(session, min(budget_s, child.timeout_s)))
            for child in self.strategies
        ]
        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    error = task.exception()
                    if error is not None:
                        logger.debug(f"{self.name}: child failed: {error}")
                    elif task.result():
                        return True
            return False
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

    def describe(self) -> str:
        return f"{self.name}: any of (" + "; ".join(s.describe() for s in self.strategies) + ")"


# ─────────────────────────────────────────────────────────────
# Builders
# ─────────────────────────────────────────────────────────────

def visible(name: str, *queries: ElementQuery, timeout_s: float) -> ElementVisibleStrategy:
    """Shorthand for ElementVisibleStrategy."""
    return ElementVisibleStrategy(name=name, timeout_s=timeout_s, queries=tuple(queries))


def url_matches(name: str, pattern: str, timeout_s: float) -> UrlPatternStrategy:
    """Shorthand for UrlPatternStrategy."""
    return UrlPatternStrategy(name=name, timeout_s=timeout_s, pattern=pattern)


def any_of(name: str, *strategies: DetectionStrategy, timeout_s: float) -> AnyOfStrategy:
    """Shorthand for AnyOfStrategy."""
    return AnyOfStrategy(name=name, timeout_s=timeout_s, strategies=tuple(strategies))
