"""
State detection exceptions.
"""

from typing import List, Optional

from fare_funnel.exceptions.base import FareFunnelError


class DetectionError(FareFunnelError):
    """Base exception for state detection errors."""
    pass


class StateNotReachedError(DetectionError):
    """
    Every detection strategy for a target state was exhausted.
    
    Recoverable: the caller may retry the wait or treat it as a
    test failure.
    
    Attributes:
        target: Label of the target state
        elapsed_s: Seconds spent before giving up
        attempted: Names of the strategies that were tried, in order
    """
    
    def __init__(
        self,
        message: str,
        target: str,
        elapsed_s: float,
        attempted: Optional[List[str]] = None,
    ):
        super().__init__(message, {
            "target": target,
            "elapsed_s": round(elapsed_s, 3),
            "attempted": attempted or [],
        })
        self.target = target
        self.elapsed_s = elapsed_s
        self.attempted = attempted or []
