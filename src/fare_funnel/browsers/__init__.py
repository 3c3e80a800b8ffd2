"""
Browsers module - Browser automation implementations.
"""

from fare_funnel.browsers.playwright_browser import (
    PlaywrightBrowser,
    PlaywrightSession,
    PlaywrightElement,
)

__all__ = [
    "PlaywrightBrowser",
    "PlaywrightSession",
    "PlaywrightElement",
]
