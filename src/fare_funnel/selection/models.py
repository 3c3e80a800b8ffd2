"""
Selection data model.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence, Union

from fare_funnel.detection.targets import TargetState
from fare_funnel.interfaces.candidate import ICandidate, IScopeControl


# Candidates, or an async callable that samples them fresh
CandidateSource = Callable[[], Awaitable[Sequence[ICandidate]]]
Candidates = Union[Sequence[ICandidate], CandidateSource]


class SelectionPolicy(str, Enum):
    """Which rule picked the winner."""
    PRICE_RANKED = "price_ranked"
    BADGE_FALLBACK = "badge_fallback"
    POSITIONAL_FALLBACK = "positional_fallback"


@dataclass
class PricedCandidate:
    """
    A candidate with a successfully parsed price.

    Attributes:
        candidate: The ranked candidate
        price: Lowest price found on it (currency-agnostic)
        index: Position in the original candidate order
        option: What to activate - the candidate itself or its cheapest sub-option
    """
    candidate: ICandidate
    price: float
    index: int
    option: ICandidate


@dataclass
class ScopeFilter:
    """
    Narrowing applied before ranking (e.g. a cabin tab).

    Attributes:
        label: Scope name; also matched against candidate.context
        control: Switches the UI to the scope
        confirmation: State that proves the scoped set has rendered
        budget_s: Budget for the confirmation (default from settings)
    """
    label: str
    control: IScopeControl
    confirmation: TargetState
    budget_s: Optional[float] = None

    def matches(self, context: Optional[str]) -> bool:
        """Candidates without a context are assumed to be in scope."""
        if context is None:
            return True
        return context.strip().lower() == self.label.strip().lower()


@dataclass
class SelectionOutcome:
    """Result of select_cheapest(); returned to the caller, never persisted."""
    candidate: ICandidate
    option: ICandidate
    policy: SelectionPolicy
    index: int
    candidate_count: int
    priced_count: int
    price: Optional[float] = None
    scope: Optional[str] = None

    def __str__(self):
        price = f" at {self.price:.2f}" if self.price is not None else ""
        scope = f" [{self.scope}]" if self.scope else ""
        return (
            f"✓ {self.option.label}{price}{scope} "
            f"({self.policy.value}, #{self.index + 1} of {self.candidate_count})"
        )
