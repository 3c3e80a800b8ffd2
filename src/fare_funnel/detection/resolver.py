"""
State Signal Resolver - "Has the target state been reached?"

Runs a TargetState's detection chain in declared order under one overall
budget. The first strategy to observe its signal wins; a strategy that
times out or errors is skipped (never retried) so the rest still get a
chance. Only when the whole chain is exhausted does the call fail.

Usage:
    resolver = StateSignalResolver(session)
    await resolver.accept_transient_overlay()
    outcome = await resolver.await_state("results", budget_s=60)
    print(outcome.strategy)   # e.g. "results-url"
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from fare_funnel.config.settings import DetectionSettings
from fare_funnel.detection.overlay import OverlayDismisser
from fare_funnel.detection.targets import TargetState, get_target
from fare_funnel.exceptions import Cancelled, StateNotReachedError
from fare_funnel.interfaces.ui import IUiSession
from fare_funnel.utils.waiting import CancelToken, Clock, Deadline, bounded_wait

logger = logging.getLogger(__name__)


@dataclass
class DetectionOutcome:
    """Result of a successful await_state()."""
    target: str
    strategy: str
    elapsed_s: float
    attempted: List[str] = field(default_factory=list)

    def __str__(self):
        return f"✓ {self.target} via {self.strategy} in {self.elapsed_s:.2f}s"


class StateSignalResolver:
    """
    Decides whether a target state has been reached.

    Holds no notion of a "current step": every call is self-contained given
    the target it is passed. Purely observational; never clicks or
    navigates (overlay dismissal is the one explicit exception and lives
    in its own method).
    """

    def __init__(
        self,
        session: IUiSession,
        settings: Optional[DetectionSettings] = None,
        clock: Optional[Clock] = None,
        cancel: Optional[CancelToken] = None,
    ):
        """
        Initialize the resolver.

        Args:
            session: UI session to observe
            settings: Detection settings (defaults if omitted)
            clock: Time source (tests pass a fake)
            cancel: Token that aborts any wait in flight with Cancelled
        """
        self._session = session
        self._settings = settings or DetectionSettings()
        self._clock = clock or Clock()
        self._cancel = cancel
        self._overlay = OverlayDismisser(session, self._settings, self._clock, cancel)

    @property
    def session(self) -> IUiSession:
        return self._session

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def cancel_token(self) -> Optional[CancelToken]:
        return self._cancel

    async def await_state(
        self,
        target: Union[TargetState, str],
        budget_s: Optional[float] = None,
        cancel: Optional[CancelToken] = None,
    ) -> DetectionOutcome:
        """
        Wait until one of the target's strategies observes its signal.

        Each strategy gets min(its own timeout, remaining budget); the last
        strategy gets whatever budget remains, so a fully failing chain
        ends at roughly the budget, not before.

        Args:
            target: TargetState or catalog label (e.g. "payment")
            budget_s: Overall budget in seconds (default from settings)
            cancel: Per-call cancel token (defaults to the resolver's)

        Returns:
            DetectionOutcome naming the winning strategy

        Raises:
            ValueError: if the budget is not positive
            StateNotReachedError: if every strategy was exhausted
            Cancelled: if the cancel token fired
        """
        state = get_target(target) if isinstance(target, str) else target
        budget = self._settings.default_budget_s if budget_s is None else budget_s
        if budget <= 0:
            raise ValueError(f"Budget must be positive, got {budget}")

        token = cancel or self._cancel
        operation = f"await_state({state.label})"
        deadline = Deadline(budget, self._clock)
        attempted: List[str] = []
        last = len(state.strategies) - 1

        logger.debug(f"Awaiting '{state.label}' (budget {budget:.1f}s): {state.strategy_names}")

        for index, strategy in enumerate(state.strategies):
            if token is not None:
                token.raise_if_cancelled(operation)
            remaining = deadline.remaining
            if remaining <= 0:
                break
            sub_budget = remaining if index == last else min(strategy.timeout_s, remaining)
            attempted.append(strategy.name)

            try:
                completed, found = await bounded_wait(
                    strategy.attempt(self._session, sub_budget),
                    sub_budget + self._settings.switch_overhead_s,
                    token,
                    operation,
                )
            except Cancelled:
                raise
            except Exception as e:
                logger.debug(f"'{state.label}': strategy {strategy.name} errored: {e}")
                continue

            if completed and found:
                elapsed = deadline.elapsed
                logger.info(f"State '{state.label}' reached via {strategy.name} in {elapsed:.2f}s")
                return DetectionOutcome(
                    target=state.label,
                    strategy=strategy.name,
                    elapsed_s=elapsed,
                    attempted=attempted,
                )

            logger.debug(f"'{state.label}': {strategy.name} saw nothing within {sub_budget:.2f}s")

        elapsed = deadline.elapsed
        raise StateNotReachedError(
            f"State '{state.label}' not reached after {elapsed:.2f}s",
            target=state.label,
            elapsed_s=elapsed,
            attempted=attempted,
        )

    async def accept_transient_overlay(self, budget_s: Optional[float] = None) -> bool:
        """
        Dismiss a cookie/consent overlay if one shows up.

        Never fails on absence; see OverlayDismisser.accept_if_present().

        Returns:
            True if a dismissal click was made
        """
        return await self._overlay.accept_if_present(budget_s)
