"""
Candidate Interface - What the ranking algorithm sees of a rendered option.

A candidate only exposes its text and a way to activate it, so ranking is
unit-testable against in-memory fakes without any real UI.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class ICandidate(ABC):
    """
    One selectable option in a rendered list.

    Attributes:
        label: Short description for logs (e.g. "fare #3")
        context: Optional sub-selection context, e.g. the cabin it belongs to
    """

    label: str = "candidate"
    context: Optional[str] = None

    @abstractmethod
    async def text(self) -> str:
        """Raw text scraped from the option."""
        ...

    @abstractmethod
    async def activate(self) -> None:
        """Trigger the selection action (e.g. click its Select button)."""
        ...

    async def sub_options(self) -> List["ICandidate"]:
        """
        Separately priced actions nested in this option (fare tiers within
        a flight). Empty when the option is itself the action.
        """
        return []


class IScopeControl(ABC):
    """A control that narrows the visible option set (e.g. a cabin tab)."""

    @abstractmethod
    async def activate(self) -> None:
        """Switch to the scope."""
        ...
