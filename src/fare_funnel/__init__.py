"""
Fare Funnel - Resilient state detection and cheapest-option selection for
multi-step booking UIs.

This package provides the decision core a booking-funnel driver calls into:
a strategy-chain resolver that confirms when a funnel state has been
reached, and a ranking selector that picks the cheapest rendered option.

Example:
    >>> from fare_funnel import StateSignalResolver, select_cheapest_fare
    >>> resolver = StateSignalResolver(session)
    >>> await resolver.accept_transient_overlay()
    >>> await resolver.await_state("results")
    >>> outcome = await select_cheapest_fare(resolver, cabin="Economy")
"""

__version__ = "0.1.0"

# Public API exports
from fare_funnel.config.settings import Settings
from fare_funnel.detection.resolver import StateSignalResolver, DetectionOutcome
from fare_funnel.detection.targets import TargetState, get_target
from fare_funnel.selection.selector import OptionRankingSelector
from fare_funnel.selection.models import SelectionOutcome, SelectionPolicy, ScopeFilter
from fare_funnel.selection.pricing import parse_price
from fare_funnel.selection.collectors import expand_first_result, select_cheapest_fare
from fare_funnel.utils.waiting import CancelToken

__all__ = [
    "Settings",
    "StateSignalResolver",
    "DetectionOutcome",
    "TargetState",
    "get_target",
    "OptionRankingSelector",
    "SelectionOutcome",
    "SelectionPolicy",
    "ScopeFilter",
    "parse_price",
    "expand_first_result",
    "select_cheapest_fare",
    "CancelToken",
    "__version__",
]
