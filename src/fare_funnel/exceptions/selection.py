"""
Option selection exceptions.
"""

from typing import Optional

from fare_funnel.exceptions.base import FareFunnelError


class SelectionError(FareFunnelError):
    """Base exception for option selection errors."""
    pass


class NoSelectableOptionError(SelectionError):
    """
    The candidate set was empty.
    
    Always fatal to the current selection step.
    
    Attributes:
        candidate_count: Size of the candidate set (0)
        scope: Scope label the set was narrowed to, if any
    """
    
    def __init__(self, message: str, candidate_count: int = 0, scope: Optional[str] = None):
        super().__init__(message, {"candidate_count": candidate_count, "scope": scope})
        self.candidate_count = candidate_count
        self.scope = scope


class ScopeActivationError(SelectionError):
    """
    The scoped option subset was never confirmed rendered.
    
    Raised instead of silently ranking the wrong subset.
    
    Attributes:
        scope: Scope label that failed to activate
        elapsed_s: Seconds spent activating and confirming
    """
    
    def __init__(self, message: str, scope: str, elapsed_s: float = 0.0):
        super().__init__(message, {"scope": scope, "elapsed_s": round(elapsed_s, 3)})
        self.scope = scope
        self.elapsed_s = elapsed_s
