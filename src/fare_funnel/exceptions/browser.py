"""
Browser-related exceptions.
"""

from fare_funnel.exceptions.base import FareFunnelError


class BrowserError(FareFunnelError):
    """Base exception for browser-related errors."""
    pass


class BrowserLaunchError(BrowserError):
    """
    Error launching the browser.
    
    Raised when the browser fails to start, which could be due to:
    - Missing browser binaries
    - Invalid browser options
    - Resource constraints
    """
    pass


class BrowserConnectionError(BrowserError):
    """
    Error connecting to the browser.
    
    Raised when a session is requested before the browser was launched
    or after it was closed.
    """
    pass


class NavigationError(BrowserError):
    """
    Error during page navigation.
    
    Raised when navigation fails, such as:
    - Invalid URL
    - Network error
    - Navigation timeout
    """
    
    def __init__(self, message: str, url: str | None = None):
        super().__init__(message, {"url": url})
        self.url = url


class ElementNotInteractableError(BrowserError):
    """
    Element cannot be interacted with.
    
    Raised when an element cannot receive a click (detached by a
    re-render, covered by another element, disabled, or never visible).
    """
    
    def __init__(self, message: str, selector: str, reason: str | None = None):
        super().__init__(message, {"selector": selector, "reason": reason})
        self.selector = selector
        self.reason = reason
