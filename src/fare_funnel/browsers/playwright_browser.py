"""
Playwright Browser - Implementation of the UI query capability using Playwright.

This module provides the Playwright-backed IUiSession / IUiElement used by
the detection and selection core, plus a small browser launcher that hands
out isolated sessions.
"""

import re
from typing import Any, List, Optional
import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from fare_funnel.interfaces.ui import (
    ElementQuery,
    IUiElement,
    IUiSession,
    QueryKind,
    QueryLike,
)
from fare_funnel.exceptions.browser import (
    BrowserLaunchError,
    BrowserConnectionError,
    ElementNotInteractableError,
    NavigationError,
)

logger = logging.getLogger(__name__)


def _pattern(value: str, ignore_case: bool = True) -> "re.Pattern[str]":
    return re.compile(value, re.IGNORECASE if ignore_case else 0)


def build_locator(root: Any, query: ElementQuery) -> Any:
    """
    Build a Playwright Locator for a query.

    Args:
        root: Playwright Page or Locator to search from
        query: The element query

    Returns:
        Playwright Locator (lazy; nothing is resolved yet)
    """
    if query.within:
        root = root.locator(query.within)

    if query.kind == QueryKind.ROLE:
        if query.name:
            locator = root.get_by_role(query.value, name=_pattern(query.name, query.ignore_case))
        else:
            locator = root.get_by_role(query.value)
    elif query.kind == QueryKind.TEXT:
        locator = root.get_by_text(_pattern(query.value, query.ignore_case))
    else:
        locator = root.locator(query.value)

    if query.has_text:
        locator = locator.filter(has_text=_pattern(query.has_text, query.ignore_case))
    return locator


def combine_locators(root: Any, query: QueryLike) -> Any:
    """Build one Locator matching any of the given queries."""
    queries = [query] if isinstance(query, ElementQuery) else list(query)
    if not queries:
        raise ValueError("At least one query is required")

    locator = build_locator(root, queries[0])
    for alternative in queries[1:]:
        locator = locator.or_(build_locator(root, alternative))
    return locator


def _describe(query: QueryLike) -> str:
    if isinstance(query, ElementQuery):
        return query.describe()
    return " | ".join(q.describe() for q in query)


class PlaywrightElement(IUiElement):
    """
    Playwright implementation of IUiElement.

    Wraps a Playwright Locator (usually an .nth()/.first slice).
    """

    # Bound on reading text from an element that may be mid re-render
    TEXT_TIMEOUT_MS = 2000

    def __init__(self, locator: Any, description: str = ""):
        """
        Initialize the element wrapper.

        Args:
            locator: Playwright Locator
            description: How the element was found (for errors and logs)
        """
        self._locator = locator
        self._description = description

    @property
    def description(self) -> str:
        return self._description

    async def text(self) -> str:
        """Get text content."""
        return (await self._locator.text_content(timeout=self.TEXT_TIMEOUT_MS)) or ""

    async def click(self, timeout_ms: Optional[int] = None) -> None:
        """Click on this element."""
        try:
            await self._locator.click(timeout=timeout_ms)
        except PlaywrightError as e:
            raise ElementNotInteractableError(
                f"Could not click: {e}",
                selector=self._description,
                reason=type(e).__name__,
            )

    async def is_visible(self) -> bool:
        """Check if visible."""
        return await self._locator.is_visible()

    def parent(self, levels: int = 1) -> IUiElement:
        """Ancestor element via XPath parent steps."""
        if levels < 1:
            return self
        path = "/".join([".."] * levels)
        return PlaywrightElement(self._locator.locator(path), f"{self._description} >> {path}")

    async def query_all(self, query: ElementQuery) -> List[IUiElement]:
        """Find all matching descendants."""
        locator = build_locator(self._locator, query)
        count = await locator.count()
        description = f"{self._description} >> {query.describe()}"
        return [PlaywrightElement(locator.nth(i), f"{description} [{i}]") for i in range(count)]


class PlaywrightSession(IUiSession):
    """
    Playwright implementation of IUiSession.

    Wraps a single Playwright Page.
    """

    def __init__(self, page: Any, navigation_timeout_ms: int = 30000):
        """
        Initialize the session wrapper.

        Args:
            page: Playwright Page object
            navigation_timeout_ms: Timeout for goto()
        """
        self._page = page
        self._navigation_timeout_ms = navigation_timeout_ms

    @property
    def page(self) -> Any:
        return self._page

    @property
    def url(self) -> str:
        """Get current URL."""
        return self._page.url

    async def goto(self, url: str) -> None:
        """Navigate to URL."""
        try:
            await self._page.goto(url, timeout=self._navigation_timeout_ms)
        except PlaywrightError as e:
            raise NavigationError(f"Failed to navigate to {url}: {e}", url=url)

    async def is_visible(self, query: QueryLike) -> bool:
        """Instant visibility check of the first match."""
        return await combine_locators(self._page, query).first.is_visible()

    async def wait_visible(self, query: QueryLike, timeout_ms: int) -> bool:
        """Wait for the first match to become visible."""
        locator = combine_locators(self._page, query).first
        try:
            await locator.wait_for(state="visible", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.debug(f"Not visible within {timeout_ms}ms: {_describe(query)}")
            return False

    async def wait_for_url(self, pattern: str, timeout_ms: int) -> bool:
        """Wait for the URL to match a pattern."""
        try:
            await self._page.wait_for_url(_pattern(pattern), timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.debug(f"URL {self._page.url} did not match /{pattern}/ within {timeout_ms}ms")
            return False

    async def query_all(self, query: ElementQuery) -> List[IUiElement]:
        """Find all matching elements."""
        locator = build_locator(self._page, query)
        count = await locator.count()
        description = query.describe()
        return [PlaywrightElement(locator.nth(i), f"{description} [{i}]") for i in range(count)]

    def first(self, query: QueryLike) -> IUiElement:
        """Lazy handle on the first match."""
        return PlaywrightElement(combine_locators(self._page, query).first, _describe(query))

    async def close(self) -> None:
        """Close the underlying page."""
        await self._page.close()


class PlaywrightBrowser:
    """
    Launches one Playwright browser and hands out isolated sessions.

    Each session gets its own browser context (cookies, storage), so
    sessions never share state.

    Example:
        >>> async with PlaywrightBrowser("webkit", headless=True) as browser:
        ...     session = await browser.new_session()
        ...     await session.goto("https://example.com")
    """

    SUPPORTED_TYPES = ("chromium", "firefox", "webkit")

    def __init__(
        self,
        browser_type: str = "chromium",
        headless: bool = True,
        slow_mo: int = 0,
    ):
        """Initialize the browser (not launched yet)."""
        if browser_type not in self.SUPPORTED_TYPES:
            raise BrowserLaunchError(
                f"Unsupported browser type: {browser_type}",
                {"supported": list(self.SUPPORTED_TYPES)},
            )
        self.browser_type = browser_type
        self.headless = headless
        self.slow_mo = slow_mo
        self._playwright: Any = None
        self._browser: Any = None
        self._contexts: List[Any] = []

    @property
    def is_connected(self) -> bool:
        """Check if browser is connected."""
        return self._browser is not None and self._browser.is_connected()

    async def launch(self) -> None:
        """Launch the browser."""
        try:
            from playwright.async_api import async_playwright

            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, self.browser_type)
            self._browser = await launcher.launch(headless=self.headless, slow_mo=self.slow_mo)

            logger.info(f"Launched {self.browser_type} browser (headless={self.headless})")

        except PlaywrightError as e:
            await self.close()
            raise BrowserLaunchError(f"Failed to launch {self.browser_type}: {e}")

    async def new_session(
        self,
        viewport_width: int = 1280,
        viewport_height: int = 720,
        timeout_ms: int = 15000,
        navigation_timeout_ms: int = 30000,
    ) -> PlaywrightSession:
        """
        Create a new isolated session (fresh context + page).

        Args:
            viewport_width: Viewport width in pixels
            viewport_height: Viewport height in pixels
            timeout_ms: Default action timeout for the page
            navigation_timeout_ms: Timeout for goto()

        Returns:
            New session instance
        """
        if not self._browser:
            raise BrowserConnectionError("Browser not launched. Call launch() first.")

        context = await self._browser.new_context(
            viewport={"width": viewport_width, "height": viewport_height},
        )
        context.set_default_timeout(timeout_ms)
        self._contexts.append(context)
        page = await context.new_page()
        return PlaywrightSession(page, navigation_timeout_ms=navigation_timeout_ms)

    async def close(self) -> None:
        """Close the browser and cleanup."""
        for context in self._contexts:
            await context.close()
        self._contexts = []

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.info(f"{self.browser_type} browser closed")

    async def __aenter__(self) -> "PlaywrightBrowser":
        await self.launch()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
