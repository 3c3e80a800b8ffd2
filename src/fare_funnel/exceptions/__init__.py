"""
Exceptions module - Custom exception hierarchy.

This module defines all custom exceptions used throughout Fare Funnel,
providing clear error types for different failure scenarios.
"""

from fare_funnel.exceptions.base import (
    FareFunnelError,
    ConfigurationError,
    Cancelled,
)
from fare_funnel.exceptions.browser import (
    BrowserError,
    BrowserLaunchError,
    BrowserConnectionError,
    NavigationError,
    ElementNotInteractableError,
)
from fare_funnel.exceptions.detection import (
    DetectionError,
    StateNotReachedError,
)
from fare_funnel.exceptions.selection import (
    SelectionError,
    NoSelectableOptionError,
    ScopeActivationError,
)

__all__ = [
    # Base exceptions
    "FareFunnelError",
    "ConfigurationError",
    "Cancelled",
    # Browser exceptions
    "BrowserError",
    "BrowserLaunchError",
    "BrowserConnectionError",
    "NavigationError",
    "ElementNotInteractableError",
    # Detection exceptions
    "DetectionError",
    "StateNotReachedError",
    # Selection exceptions
    "SelectionError",
    "NoSelectableOptionError",
    "ScopeActivationError",
]
