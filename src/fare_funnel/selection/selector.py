"""
Option Ranking Selector - Pick and activate the cheapest rendered option.

Algorithm:
1. Optional scope: activate the scope control, confirm the scoped set
   rendered (via StateSignalResolver), drop out-of-scope candidates
2. Price every candidate (per sub-option when it has nested fare tiers;
   the cheapest sub-option represents the candidate)
3. Stable sort ascending by price; ties keep original order
4. Nothing priced: first "Lowest"/"Cheapest" badge, else first candidate
5. Activate the winner exactly once, after ranking is complete

A single candidate whose text cannot be read or priced never sinks the
whole selection; only an empty set or a failed scope does.
"""

import logging
from typing import Awaitable, List, Optional, Sequence

from fare_funnel.config.settings import SelectionSettings
from fare_funnel.detection.resolver import StateSignalResolver
from fare_funnel.exceptions import (
    Cancelled,
    ConfigurationError,
    NoSelectableOptionError,
    ScopeActivationError,
)
from fare_funnel.interfaces.candidate import ICandidate
from fare_funnel.selection.models import (
    Candidates,
    PricedCandidate,
    ScopeFilter,
    SelectionOutcome,
    SelectionPolicy,
)
from fare_funnel.selection.pricing import has_lowest_badge, parse_price
from fare_funnel.utils.waiting import CancelToken, bounded_wait

logger = logging.getLogger(__name__)


class OptionRankingSelector:
    """
    Deterministically selects the cheapest option in a candidate set.

    Usage:
        selector = OptionRankingSelector(resolver)
        outcome = await selector.select_cheapest(candidates)
        print(outcome.policy, outcome.price)
    """

    OPERATION = "select_cheapest"

    def __init__(
        self,
        resolver: Optional[StateSignalResolver] = None,
        settings: Optional[SelectionSettings] = None,
        cancel: Optional[CancelToken] = None,
    ):
        """
        Initialize the selector.

        Args:
            resolver: Used to confirm scope activation; only required when
                a scope is passed to select_cheapest()
            settings: Selection settings (defaults if omitted)
            cancel: Token that aborts scope and winner clicks with Cancelled
                (defaults to the resolver's)
        """
        self._resolver = resolver
        self._settings = settings or SelectionSettings()
        if cancel is None and resolver is not None:
            cancel = resolver.cancel_token
        self._cancel = cancel

    async def select_cheapest(
        self,
        candidates: Candidates,
        scope: Optional[ScopeFilter] = None,
    ) -> SelectionOutcome:
        """
        Rank candidates by price and activate the winner.

        Args:
            candidates: Candidates, or an async callable sampling them. Pass
                a callable together with a scope: switching scope re-renders
                the list and invalidates earlier handles.
            scope: Optional narrowing applied before ranking

        Returns:
            SelectionOutcome describing the winner and the policy used

        Raises:
            ScopeActivationError: if the scope could not be confirmed
            NoSelectableOptionError: if there is nothing to select
            Cancelled: if the cancel token fired before the winner was activated
        """
        scope_label = scope.label if scope else None

        if scope is not None:
            await self._activate_scope(scope)

        pool = await self._sample(candidates)
        if scope is not None:
            pool = [c for c in pool if scope.matches(c.context)]

        if not pool:
            where = f" in scope '{scope_label}'" if scope_label else ""
            raise NoSelectableOptionError(
                f"No selectable options{where}",
                candidate_count=0,
                scope=scope_label,
            )

        priced = await self.rank(pool)

        if priced:
            winner = priced[0]
            index, option, price = winner.index, winner.option, winner.price
            policy = SelectionPolicy.PRICE_RANKED
        else:
            badge_index = await self._find_badge(pool)
            if badge_index is not None:
                index, policy = badge_index, SelectionPolicy.BADGE_FALLBACK
            else:
                index, policy = 0, SelectionPolicy.POSITIONAL_FALLBACK
            option, price = pool[index], None

        outcome = SelectionOutcome(
            candidate=pool[index],
            option=option,
            policy=policy,
            index=index,
            candidate_count=len(pool),
            priced_count=len(priced),
            price=price,
            scope=scope_label,
        )
        logger.info(f"Selecting {outcome}")

        await self._click(option.activate())
        return outcome

    async def rank(self, pool: Sequence[ICandidate]) -> List[PricedCandidate]:
        """
        Price candidates and sort ascending (stable). No side effects.

        Returns:
            Priced candidates, cheapest first; unpriced ones are left out
        """
        priced: List[PricedCandidate] = []
        for index, candidate in enumerate(pool):
            entry = await self._price_candidate(index, candidate)
            if entry is not None:
                priced.append(entry)
        priced.sort(key=lambda p: p.price)
        return priced

    # ─────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────

    async def _sample(self, candidates: Candidates) -> List[ICandidate]:
        if callable(candidates):
            return list(await candidates())
        return list(candidates)

    async def _activate_scope(self, scope: ScopeFilter) -> None:
        if self._resolver is None:
            raise ConfigurationError("Scope narrowing needs a StateSignalResolver")

        clock = self._resolver.clock
        started = clock.now()
        budget = scope.budget_s if scope.budget_s is not None else self._settings.scope_budget_s
        try:
            await self._click(scope.control.activate())
            await self._resolver.await_state(scope.confirmation, budget, cancel=self._cancel)
        except Cancelled:
            raise
        except Exception as e:
            elapsed = clock.now() - started
            raise ScopeActivationError(
                f"Scope '{scope.label}' not confirmed: {e}",
                scope=scope.label,
                elapsed_s=elapsed,
            ) from e
        logger.debug(f"Scope '{scope.label}' active")

    async def _price_candidate(self, index: int, candidate: ICandidate) -> Optional[PricedCandidate]:
        try:
            options = await candidate.sub_options()
        except Exception as e:
            logger.debug(f"{candidate.label}: could not list sub-options: {e}")
            options = []

        best: Optional[PricedCandidate] = None
        for option in options or [candidate]:
            price = await self._read_price(option)
            if price is not None and (best is None or price < best.price):
                best = PricedCandidate(candidate=candidate, price=price, index=index, option=option)
        return best

    async def _read_price(self, option: ICandidate) -> Optional[float]:
        try:
            text = await option.text()
        except Exception as e:
            logger.debug(f"{option.label}: text unavailable: {e}")
            return None
        price = parse_price(text)
        if price is None:
            logger.debug(f"{option.label}: no price in {(text or '')[:80]!r}")
        return price

    async def _find_badge(self, pool: Sequence[ICandidate]) -> Optional[int]:
        for index, candidate in enumerate(pool):
            try:
                text = await candidate.text()
            except Exception as e:
                logger.debug(f"{candidate.label}: text unavailable: {e}")
                continue
            if has_lowest_badge(text):
                return index
        return None

    async def _click(self, activation: Awaitable[None]) -> None:
        # The click carries its own timeout; this only races the cancel token
        await bounded_wait(activation, None, self._cancel, self.OPERATION)
