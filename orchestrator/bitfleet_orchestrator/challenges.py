"""Best-effort handling of Cloudflare Turnstile challenges."""

from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import Error as PlaywrightError

LOGGER = logging.getLogger(__name__)

TURNSTILE_FRAME_SELECTOR = 'iframe[src*="challenges.cloudflare.com"]'
# Horizontal offset of the checkbox inside the widget.
_CHECKBOX_OFFSET_X = 30


async def click_turnstile(page: Any) -> bool:
    """Click the Turnstile checkbox on ``page`` if a widget is present."""

    widget = page.locator(TURNSTILE_FRAME_SELECTOR).first
    try:
        if await widget.count() == 0:
            return False
        box = await widget.bounding_box()
        if not box:
            return False
        x = box["x"] + min(_CHECKBOX_OFFSET_X, box["width"] / 2)
        y = box["y"] + box["height"] / 2
        await page.mouse.click(x, y)
    except PlaywrightError as exc:
        LOGGER.debug("Turnstile click failed on %s: %s", getattr(page, "url", "<page>"), exc)
        return False
    LOGGER.info("Clicked Turnstile challenge on %s", getattr(page, "url", "<page>"))
    return True


class TurnstileHandler:
    """Watch a page's ``load`` events and click any Turnstile widget."""

    def __init__(self, page: Any) -> None:
        self._page = page
        self._attached = False

    def attach(self) -> None:
        if self._attached:
            return
        self._page.on("load", self._on_load)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        self._page.remove_listener("load", self._on_load)
        self._attached = False

    async def _on_load(self, page: Any) -> None:
        await click_turnstile(page)


__all__ = ["TURNSTILE_FRAME_SELECTOR", "TurnstileHandler", "click_turnstile"]
