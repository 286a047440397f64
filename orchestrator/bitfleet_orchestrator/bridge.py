"""Playwright bridge onto a remote browser's DevTools endpoint."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from playwright.async_api import Browser, Page, Playwright

from .cache import SessionStateCache
from .challenges import TurnstileHandler
from .errors import NoActivePageError
from .models import ConnectionConfig, DebugInfo

LOGGER = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT_MS = 30_000
DEFAULT_WAIT_UNTIL = "networkidle"

NOT_FOUND_CAUSES = (
    "the remote browser does not expose its debug port",
    "the WebSocket debugger URL is malformed",
    "the automation library is incompatible with the browser core version",
    "the remote browser process crashed or was closed",
)


class AutomationBridge:
    """Attach Playwright to an already running remote browser.

    The bridge never launches a browser of its own: it connects over CDP to
    the resolved endpoint and drives the first page it finds there.  It holds
    at most one browser/page pair; connecting again replaces it.
    """

    def __init__(
        self,
        playwright: Playwright,
        cache: SessionStateCache,
        *,
        defaults: ConnectionConfig | None = None,
        navigation_timeout_ms: float = DEFAULT_NAVIGATION_TIMEOUT_MS,
        navigation_wait_until: str = DEFAULT_WAIT_UNTIL,
    ) -> None:
        self._playwright = playwright
        self._cache = cache
        self._defaults = defaults or ConnectionConfig()
        self._navigation_timeout_ms = navigation_timeout_ms
        self._navigation_wait_until = navigation_wait_until
        self._browser: Browser | None = None
        self._page: Page | None = None
        self._config: ConnectionConfig | None = None
        self._turnstile: TurnstileHandler | None = None

    @property
    def browser(self) -> Browser | None:
        return self._browser

    @property
    def page(self) -> Page | None:
        return self._page

    @property
    def config(self) -> ConnectionConfig | None:
        return self._config

    async def connect(
        self, debug_info: DebugInfo, overrides: Mapping[str, Any] | None = None
    ) -> tuple[Browser, Page]:
        """Connect to ``debug_info.debugger_address`` and return ``(browser, page)``."""

        config = self._defaults.merged(overrides).for_endpoint(debug_info.debugger_address)
        endpoint = config.browser_ws_endpoint
        self._persist(config, debug_info)

        options = config.connect_option
        kwargs: dict[str, Any] = {}
        if options.timeout is not None:
            kwargs["timeout"] = options.timeout
        if options.slow_mo is not None:
            kwargs["slow_mo"] = options.slow_mo
        if options.headers:
            kwargs["headers"] = options.headers

        LOGGER.debug("Connecting over CDP to %s with %s", endpoint, kwargs)
        try:
            browser = await self._playwright.chromium.connect_over_cdp(endpoint, **kwargs)
        except Exception as exc:
            LOGGER.error("Error connecting to remote browser at %s: %s", endpoint, exc)
            if _is_not_found(exc):
                LOGGER.error(
                    "Endpoint not found; likely causes: %s", "; ".join(NOT_FOUND_CAUSES)
                )
            raise

        try:
            context = browser.contexts[0] if browser.contexts else await browser.new_context()
            page = context.pages[0] if context.pages else await context.new_page()
            if options.default_viewport is not None:
                await page.set_viewport_size(options.default_viewport.model_dump())
        except Exception as exc:
            LOGGER.error("Error preparing page on %s: %s", endpoint, exc)
            await self._abandon(browser)
            raise

        self._detach_turnstile()
        if config.turnstile:
            self._turnstile = TurnstileHandler(page)
            self._turnstile.attach()

        self._browser = browser
        self._page = page
        self._config = config
        LOGGER.info("Connected to remote browser at %s", endpoint)
        return browser, page

    async def navigate(self, url: str, **options: Any) -> Any:
        page = self._require_page()
        goto_options = {
            "wait_until": self._navigation_wait_until,
            "timeout": self._navigation_timeout_ms,
            **options,
        }
        try:
            response = await page.goto(url, **goto_options)
        except Exception as exc:
            LOGGER.error("Error navigating to %s: %s", url, exc)
            raise
        LOGGER.info("Navigated to: %s", url)
        return response

    async def evaluate(self, expression: str, *args: Any) -> Any:
        """Evaluate ``expression`` in the page.

        Playwright passes a single argument to the page function; several
        positional ``args`` are therefore delivered as one list.
        """

        page = self._require_page()
        try:
            if not args:
                return await page.evaluate(expression)
            arg = args[0] if len(args) == 1 else list(args)
            return await page.evaluate(expression, arg)
        except Exception as exc:
            LOGGER.error("Error evaluating JavaScript: %s", exc)
            raise

    async def screenshot(self, **options: Any) -> bytes:
        page = self._require_page()
        try:
            data = await page.screenshot(**{"full_page": True, **options})
        except Exception as exc:
            LOGGER.error("Error taking screenshot: %s", exc)
            raise
        LOGGER.info("Screenshot taken")
        return data

    async def close(self) -> None:
        """Disconnect from the remote browser and clear the cache.

        Playwright only disconnects from browsers attached over CDP; the
        remote process keeps running until the control API closes it.
        """

        browser = self._browser
        self._detach_turnstile()
        self._browser = None
        self._page = None
        self._config = None
        try:
            if browser is not None:
                await browser.close()
                LOGGER.info("Disconnected from remote browser")
        except Exception as exc:
            LOGGER.error("Error disconnecting from remote browser: %s", exc)
            raise
        finally:
            self._cache.cleanup()

    def _require_page(self) -> Page:
        if self._page is None:
            raise NoActivePageError("No page available; connect first")
        return self._page

    def _detach_turnstile(self) -> None:
        if self._turnstile is not None:
            self._turnstile.detach()
            self._turnstile = None

    async def _abandon(self, browser: Browser) -> None:
        try:
            await browser.close()
        except Exception as exc:
            LOGGER.error("Error disconnecting from remote browser: %s", exc)
        self._cache.cleanup()

    def _persist(self, config: ConnectionConfig, debug_info: DebugInfo) -> None:
        try:
            self._cache.persist(config, debug_info)
        except OSError as exc:
            LOGGER.warning("Could not cache connection artifacts: %s", exc)


def _is_not_found(exc: BaseException) -> bool:
    message = str(exc).lower()
    return "not found" in message or "404" in message


__all__ = ["AutomationBridge", "NOT_FOUND_CAUSES"]
