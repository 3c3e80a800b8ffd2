"""
Selection module - Comparative option selection.

Extracts a priced option set from a rendered list and deterministically
activates the cheapest option, with badge and positional fallbacks.
"""

from fare_funnel.selection.pricing import parse_price, has_lowest_badge
from fare_funnel.selection.models import (
    CandidateSource,
    Candidates,
    PricedCandidate,
    ScopeFilter,
    SelectionOutcome,
    SelectionPolicy,
)
from fare_funnel.selection.selector import OptionRankingSelector
from fare_funnel.selection.collectors import (
    CABIN_OPTIONS,
    CabinOption,
    ElementCandidate,
    FareButtonCandidate,
    ResultCardCandidate,
    TabScopeControl,
    cabin_pattern,
    cabin_scope,
    collect_card_options,
    collect_fare_candidates,
    expand_first_result,
    fare_candidate_source,
    first_result_card,
    first_result_row,
    select_cheapest_fare,
)

__all__ = [
    "parse_price",
    "has_lowest_badge",
    "CandidateSource",
    "Candidates",
    "PricedCandidate",
    "ScopeFilter",
    "SelectionOutcome",
    "SelectionPolicy",
    "OptionRankingSelector",
    "CABIN_OPTIONS",
    "CabinOption",
    "ElementCandidate",
    "FareButtonCandidate",
    "ResultCardCandidate",
    "TabScopeControl",
    "cabin_pattern",
    "cabin_scope",
    "collect_card_options",
    "collect_fare_candidates",
    "expand_first_result",
    "fare_candidate_source",
    "first_result_card",
    "first_result_row",
    "select_cheapest_fare",
]
