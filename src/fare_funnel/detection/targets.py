"""
Target States - Named funnel milestones and how to recognise each.

Every TargetState carries its detection chain ordered from the most specific
signal (a semantic heading or region) to the most generic (URL pattern, any
result-looking row). The catalog covers the booking funnel from search
results to the payment checkpoint.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from fare_funnel.detection.strategies import DetectionStrategy, any_of, url_matches, visible
from fare_funnel.exceptions import ConfigurationError
from fare_funnel.interfaces.ui import ElementQuery


@dataclass(frozen=True)
class TargetState:
    """
    A logical UI milestone and its ordered detection chain.

    Attributes:
        label: Logical name (e.g. "results", "payment")
        strategies: Non-empty, most reliable first
    """
    label: str
    strategies: Tuple[DetectionStrategy, ...]

    def __post_init__(self):
        if not self.strategies:
            raise ConfigurationError(f"Target state '{self.label}' has no detection strategies")

    @classmethod
    def of(cls, label: str, *strategies: DetectionStrategy) -> "TargetState":
        return cls(label=label, strategies=tuple(strategies))

    @property
    def strategy_names(self) -> List[str]:
        return [s.name for s in self.strategies]


# ─────────────────────────────────────────────────────────────
# Catalog
# ─────────────────────────────────────────────────────────────

def _heading(pattern: str) -> ElementQuery:
    return ElementQuery.role("heading", name=pattern)


def results_ready() -> TargetState:
    return TargetState.of(
        "results",
        visible(
            "results-container",
            ElementQuery.role("region", name=r"results|flights|offers"),
            ElementQuery.css('[data-testid*="result"], [data-testid*="flight-list"]'),
            timeout_s=45,
        ),
        url_matches("results-url", r"/(search|results|booking|bkmg)", timeout_s=20),
        visible(
            "any-result-row",
            ElementQuery.css('[data-testid*="flight"], [class*="flight-result"], [role="listitem"]'),
            ElementQuery.role("button", name=r"select|choose fare"),
            timeout_s=25,
        ),
    )


def review_ready() -> TargetState:
    return TargetState.of(
        "review",
        visible("review-heading", _heading(r"review|booking summary|trip summary"), timeout_s=30),
        url_matches("review-url", r"/review|/booking", timeout_s=30),
    )


def passenger_ready() -> TargetState:
    return TargetState.of(
        "passenger",
        visible("passenger-heading", _heading(r"passenger|contact|traveler|guest details"), timeout_s=30),
        url_matches("passenger-url", r"/passenger|/contact|/traveler", timeout_s=30),
    )


def seat_selection_ready() -> TargetState:
    return TargetState.of(
        "seat_selection",
        visible("seat-heading", _heading(r"seat|seating"), timeout_s=30),
        url_matches("seat-url", r"/seat", timeout_s=30),
    )


def seat_or_options_ready() -> TargetState:
    return TargetState.of(
        "seat_or_options",
        any_of(
            "seat-or-options-heading",
            visible("seat-heading", _heading(r"seat|seating"), timeout_s=30),
            visible("options-heading", _heading(r"options|add-ons|extras"), timeout_s=30),
            timeout_s=30,
        ),
        url_matches("seat-or-options-url", r"/seat|/options|/add-ons", timeout_s=30),
    )


def options_ready() -> TargetState:
    return TargetState.of(
        "options",
        visible("options-heading", _heading(r"options|add-ons|extras|travel options"), timeout_s=30),
        url_matches("options-url", r"/options|/add-ons", timeout_s=30),
    )


def payment_ready() -> TargetState:
    return TargetState.of(
        "payment",
        visible("payment-heading", _heading(r"payment|checkout|billing|payment method"), timeout_s=30),
        url_matches("payment-url", r"/payment|/checkout|/billing", timeout_s=30),
    )


def fare_section_ready() -> TargetState:
    """Fare tiers of an expanded result are rendered."""
    return TargetState.of(
        "fare_section",
        visible(
            "fare-section",
            _heading(r"signature class|economy|premium economy|business class"),
            ElementQuery.role("tab", name=r"economy|premium|business"),
            ElementQuery.role("button", name=r"economy|premium economy|business class"),
            ElementQuery.text(r"Lowest|Flexible|Standard|Basic", ignore_case=False),
            timeout_s=15,
        ),
    )


_CATALOG: Dict[str, Callable[[], TargetState]] = {
    "results": results_ready,
    "fare_section": fare_section_ready,
    "review": review_ready,
    "passenger": passenger_ready,
    "seat_selection": seat_selection_ready,
    "seat_or_options": seat_or_options_ready,
    "options": options_ready,
    "payment": payment_ready,
}


def list_targets() -> List[str]:
    """All catalog labels, in funnel order."""
    return list(_CATALOG)


def get_target(label: str) -> TargetState:
    """
    Look up a catalog target state by label (case-insensitive).

    Raises:
        ConfigurationError: if the label is unknown
    """
    key = label.strip().lower().replace("-", "_").replace(" ", "_")
    factory = _CATALOG.get(key)
    if factory is None:
        raise ConfigurationError(
            f"Unknown target state: {label}",
            {"known": list_targets()},
        )
    return factory()
