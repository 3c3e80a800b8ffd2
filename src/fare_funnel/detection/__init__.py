"""
Detection module - Resilient state detection.

Decides whether a named funnel state has been reached by running an
ordered chain of independent detection strategies under a time budget.
"""

from fare_funnel.detection.strategies import (
    DetectionStrategy,
    ElementVisibleStrategy,
    UrlPatternStrategy,
    AnyOfStrategy,
    visible,
    url_matches,
    any_of,
)
from fare_funnel.detection.targets import (
    TargetState,
    get_target,
    list_targets,
)
from fare_funnel.detection.overlay import OverlayDismisser, DISMISS_QUERIES
from fare_funnel.detection.resolver import StateSignalResolver, DetectionOutcome

__all__ = [
    "DetectionStrategy",
    "ElementVisibleStrategy",
    "UrlPatternStrategy",
    "AnyOfStrategy",
    "visible",
    "url_matches",
    "any_of",
    "TargetState",
    "get_target",
    "list_targets",
    "OverlayDismisser",
    "DISMISS_QUERIES",
    "StateSignalResolver",
    "DetectionOutcome",
]
