"""
UI Interface - The query capability the detection/selection core consumes.

The core never touches a browser library directly. It asks an IUiSession to
resolve elements by semantic role/name, visible text or raw CSS,
to match the current URL, and to report visibility/text/click on demand.
The Playwright implementation lives in fare_funnel.browsers.

Example:
    >>> query = ElementQuery.role("heading", name=r"payment|checkout")
    >>> await session.wait_visible(query, timeout_ms=30_000)
    True
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Union


class QueryKind(str, Enum):
    """Element query types - ordered by reliability."""
    ROLE = "role"           # ARIA role + accessible name
    TEXT = "text"           # Visible text (regex)
    CSS = "css"             # CSS selector (fallback)


@dataclass(frozen=True)
class ElementQuery:
    """
    One way of finding an element.

    Patterns (``name``, ``has_text`` and ``value`` for TEXT queries) are
    regular expressions matched case-insensitively unless ``ignore_case``
    is False.

    Attributes:
        kind: Query type
        value: Role name, CSS selector or text pattern
        name: Accessible-name pattern for ROLE queries
        has_text: Keep only matches whose text matches this pattern
        within: CSS selector of the container to search inside
        ignore_case: Match patterns case-insensitively
    """
    kind: QueryKind
    value: str
    name: Optional[str] = None
    has_text: Optional[str] = None
    within: Optional[str] = None
    ignore_case: bool = True

    @classmethod
    def role(cls, role: str, name: Optional[str] = None, within: Optional[str] = None) -> "ElementQuery":
        return cls(QueryKind.ROLE, role, name=name, within=within)

    @classmethod
    def css(cls, selector: str, has_text: Optional[str] = None, within: Optional[str] = None) -> "ElementQuery":
        return cls(QueryKind.CSS, selector, has_text=has_text, within=within)

    @classmethod
    def text(cls, pattern: str, within: Optional[str] = None, ignore_case: bool = True) -> "ElementQuery":
        return cls(QueryKind.TEXT, pattern, within=within, ignore_case=ignore_case)

    def describe(self) -> str:
        """Human-readable form, in Playwright locator notation."""
        flags = "i" if self.ignore_case else ""
        if self.kind == QueryKind.ROLE:
            base = f'getByRole("{self.value}", name=/{self.name}/{flags})' if self.name else f'getByRole("{self.value}")'
        elif self.kind == QueryKind.TEXT:
            base = f'getByText(/{self.value}/{flags})'
        else:
            base = f'locator("{self.value}")'
        if self.has_text:
            base += f'.filter(hasText=/{self.has_text}/{flags})'
        if self.within:
            base = f'locator("{self.within}").{base}'
        return base


# A single query, or alternatives where any match will do
QueryLike = Union[ElementQuery, Sequence[ElementQuery]]


class IUiElement(ABC):
    """
    A live (lazily resolved) element handle.

    Handles are invalidated by re-rendering; never keep one across a
    navigation or a scope switch.
    """

    @abstractmethod
    async def text(self) -> str:
        """Visible text content ('' when unavailable)."""
        ...

    @abstractmethod
    async def click(self, timeout_ms: Optional[int] = None) -> None:
        """Click this element."""
        ...

    @abstractmethod
    async def is_visible(self) -> bool:
        """Whether the element is currently visible."""
        ...

    @abstractmethod
    def parent(self, levels: int = 1) -> "IUiElement":
        """The ancestor ``levels`` steps up."""
        ...

    @abstractmethod
    async def query_all(self, query: ElementQuery) -> List["IUiElement"]:
        """All descendants matching a query, in document order."""
        ...


class IUiSession(ABC):
    """
    One UI session (a single browser page).

    Sessions are never shared between concurrent runs.
    """

    @property
    @abstractmethod
    def url(self) -> str:
        """Current page URL."""
        ...

    @abstractmethod
    async def goto(self, url: str) -> None:
        """Navigate to a URL."""
        ...

    @abstractmethod
    async def is_visible(self, query: QueryLike) -> bool:
        """Instant check: is the first match of the query visible right now?"""
        ...

    @abstractmethod
    async def wait_visible(self, query: QueryLike, timeout_ms: int) -> bool:
        """
        Wait for the first match of the query to become visible.

        Returns:
            True if it became visible within the timeout, False otherwise
        """
        ...

    @abstractmethod
    async def wait_for_url(self, pattern: str, timeout_ms: int) -> bool:
        """
        Wait for the current URL to match a regex (searched, not anchored).

        Returns:
            True if the URL matched within the timeout, False otherwise
        """
        ...

    @abstractmethod
    async def query_all(self, query: ElementQuery) -> List[IUiElement]:
        """All elements matching a query, in document order."""
        ...

    @abstractmethod
    def first(self, query: QueryLike) -> IUiElement:
        """Lazy handle on the first match of a query."""
        ...
