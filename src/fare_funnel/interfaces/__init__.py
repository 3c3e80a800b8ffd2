"""
Interfaces module - Abstract base classes for the pluggable seams.

This module defines the contracts the UI layer and rendered options must
implement to be driven by the detection and selection core.
"""

from fare_funnel.interfaces.ui import (
    IUiSession,
    IUiElement,
    ElementQuery,
    QueryKind,
    QueryLike,
)
from fare_funnel.interfaces.candidate import (
    ICandidate,
    IScopeControl,
)

__all__ = [
    # UI interfaces
    "IUiSession",
    "IUiElement",
    "ElementQuery",
    "QueryKind",
    "QueryLike",
    # Candidate interfaces
    "ICandidate",
    "IScopeControl",
]
