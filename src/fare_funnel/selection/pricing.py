"""
Price extraction from scraped option text.

Pure, deterministic helpers. A number only counts as a price when a
currency marker sits right next to it, so flight numbers, dates and
durations in the same card are never mistaken for fares.
"""

import re
from typing import Optional

# "CA $8,004", "CAD 1234.56", "USD 99", "$999"  |  "1234.56 CAD", "99 USD"
_PRICE_RE = re.compile(
    r"(?:CA\s*\$|CAD|USD|\$)\s*(\d+(?:\.\d{2})?)"
    r"|(\d+(?:\.\d{2})?)\s*(?:CAD|USD)",
    re.IGNORECASE,
)

_BADGE_RE = re.compile(r"\b(?:lowest|cheapest)\b", re.IGNORECASE)


def parse_price(text: Optional[str]) -> Optional[float]:
    """
    Parse the first currency-marked amount in a string.

    Thousands separators are stripped first; the fractional part is only
    taken when it has exactly two digits.

    Args:
        text: Raw text scraped from an option

    Returns:
        The amount, or None if no currency-marked number is present

    Example:
        >>> parse_price("CA $8,004")
        8004.0
        >>> parse_price("Flight AC123") is None
        True
    """
    if not text or not isinstance(text, str):
        return None

    match = _PRICE_RE.search(text.replace(",", ""))
    if not match:
        return None

    try:
        return float(match.group(1) or match.group(2))
    except (TypeError, ValueError):
        return None


def has_lowest_badge(text: Optional[str]) -> bool:
    """Whether the text carries a "Lowest"/"Cheapest" badge."""
    if not text or not isinstance(text, str):
        return False
    return _BADGE_RE.search(text) is not None
