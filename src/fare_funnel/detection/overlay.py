"""
Overlay Dismisser - Accepts cookie/consent banners that may block clicks.

Banners are transient and may render late or not at all. Absence is the
normal case, so nothing here raises except Cancelled.

Strategy:
- Primary: OneTrust accept button (#onetrust-accept-btn-handler)
- Fallbacks: accessible-name match on buttons, then links, then any
  accept-ish control inside a dialog/cookie/consent container
- Each scan window opens with a priority phase in which only the
  consent-specific controls (OneTrust id, dialog-scoped) are clicked; the
  page-wide name matches ("Continue", "OK", ...) are only tried afterwards
- Poll the list for the primary window; if nothing was clicked, pause once
  for a short grace period and scan again with a shorter window
"""

import logging
from typing import Optional, Sequence, Tuple

from fare_funnel.config.settings import DetectionSettings
from fare_funnel.exceptions import Cancelled
from fare_funnel.interfaces.ui import ElementQuery, IUiSession
from fare_funnel.utils.waiting import CancelToken, Clock, cancellable_sleep, poll_until

logger = logging.getLogger(__name__)


ONETRUST_ACCEPT = ElementQuery.css("#onetrust-accept-btn-handler")
CONSENT_DIALOG_CONTROL = ElementQuery.css(
    "button, a",
    has_text=r"\b(accept|agree|allow all|ok)\b",
    within='[role="dialog"], [class*="cookie"], [class*="consent"], [id*="cookie"]',
)

DISMISS_QUERIES: Tuple[ElementQuery, ...] = (
    ONETRUST_ACCEPT,
    ElementQuery.role("button", name=r"\b(accept all|accept|agree|allow all|allow|ok|continue|yes)\b"),
    ElementQuery.role("link", name=r"\b(accept all|accept|agree|allow all|allow|ok|continue)\b"),
    CONSENT_DIALOG_CONTROL,
)

# Safe to click as soon as they show: they can only belong to a consent banner
PRIORITY_QUERIES: Tuple[ElementQuery, ...] = (ONETRUST_ACCEPT, CONSENT_DIALOG_CONTROL)


class OverlayDismisser:
    """
    Finds and clicks the first visible dismissal control.

    Usage:
        dismisser = OverlayDismisser(session)
        if await dismisser.accept_if_present():
            ...
    """

    CLICK_TIMEOUT_MS = 3000
    OPERATION = "accept_transient_overlay"

    def __init__(
        self,
        session: IUiSession,
        settings: Optional[DetectionSettings] = None,
        clock: Optional[Clock] = None,
        cancel: Optional[CancelToken] = None,
        queries: Sequence[ElementQuery] = DISMISS_QUERIES,
        priority: Sequence[ElementQuery] = PRIORITY_QUERIES,
    ):
        self._session = session
        self._settings = settings or DetectionSettings()
        self._clock = clock or Clock()
        self._cancel = cancel
        self._queries = tuple(queries)
        self._priority = tuple(q for q in self._queries if q in priority)

    async def accept_if_present(self, budget_s: Optional[float] = None) -> bool:
        """
        Dismiss the overlay if one appears.

        Args:
            budget_s: Primary window in seconds (default from settings)

        Returns:
            True if a dismissal click was made, False if none was found
        """
        primary = self._settings.overlay_primary_s if budget_s is None else max(0.0, budget_s)

        if await self._scan(primary):
            return True

        # Late-rendering banners: one short pause, one shorter rescan
        await cancellable_sleep(self._settings.overlay_grace_s, self._clock, self._cancel, self.OPERATION)
        if await self._scan(self._settings.overlay_secondary_s):
            return True

        logger.debug("No consent overlay found")
        return False

    async def _scan(self, window_s: float) -> bool:
        priority_s = min(window_s, self._settings.overlay_priority_s)
        if self._priority and priority_s > 0:
            if await self._poll(self._priority, priority_s):
                return True
            window_s -= priority_s
        return await self._poll(self._queries, window_s)

    async def _poll(self, queries: Tuple[ElementQuery, ...], window_s: float) -> bool:
        async def try_click_once() -> bool:
            return await self._try_click_once(queries)

        return await poll_until(
            try_click_once,
            window_s,
            self._clock,
            self._cancel,
            interval_s=self._settings.poll_interval_ms / 1000,
            operation=self.OPERATION,
        )

    async def _try_click_once(self, queries: Tuple[ElementQuery, ...]) -> bool:
        for query in queries:
            try:
                if not await self._session.is_visible(query):
                    continue
                await self._session.first(query).click(timeout_ms=self.CLICK_TIMEOUT_MS)
            except Cancelled:
                raise
            except Exception as e:
                logger.warning(f"Overlay control {query.describe()} failed: {e}")
                continue
            logger.info(f"Dismissed overlay via {query.describe()}")
            return True
        return False
