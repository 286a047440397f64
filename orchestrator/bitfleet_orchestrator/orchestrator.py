"""Scoped owner of every component needed to drive one remote browser session."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from playwright.async_api import Browser, Page, Playwright, async_playwright

from .bridge import AutomationBridge
from .cache import PeriodicCacheCleaner, SessionStateCache
from .client import BitBrowserClient
from .config import OrchestratorSettings, load_settings
from .lifecycle import ProcessHooks
from .models import BrowserCreateRequest, BrowserFingerprint, DebugInfo
from .resolver import DebugEndpointResolver

LOGGER = logging.getLogger(__name__)


class SessionOrchestrator:
    """Create, attach to and tear down remote browser sessions.

    Use as an async context manager.  Entering starts Playwright, the
    periodic cache cleaner and the exit/interrupt hooks; leaving disconnects
    the bridge and releases all of them, so several orchestrators can live in
    one process without sharing state.
    """

    def __init__(
        self,
        settings: OrchestratorSettings | None = None,
        *,
        playwright: Playwright | None = None,
        http_client: httpx.AsyncClient | None = None,
        discovery_client: httpx.AsyncClient | None = None,
        install_hooks: bool = True,
    ) -> None:
        self.settings = settings or load_settings()
        self.client = BitBrowserClient.from_settings(self.settings, http_client=http_client)
        self.resolver = DebugEndpointResolver(
            self.client,
            discovery_timeout=self.settings.discovery_timeout,
            http_client=discovery_client,
        )
        self.cache = SessionStateCache.from_settings(self.settings)
        self.cleaner = PeriodicCacheCleaner(self.cache, interval=self.settings.cleanup_interval)
        self.hooks = ProcessHooks(self.cache.cleanup)
        self._install_hooks = install_hooks
        self._playwright = playwright
        self._playwright_manager: Any = None
        self._bridge: AutomationBridge | None = None

    async def __aenter__(self) -> "SessionOrchestrator":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def bridge(self) -> AutomationBridge:
        if self._bridge is None:
            raise RuntimeError("Orchestrator is not started")
        return self._bridge

    async def start(self) -> None:
        if self._bridge is not None:
            return
        LOGGER.info("Starting session orchestrator against %s", self.settings.api_base_url)
        if self._playwright is None:
            self._playwright_manager = async_playwright()
            self._playwright = await self._playwright_manager.start()
        self._bridge = AutomationBridge(
            self._playwright,
            self.cache,
            defaults=self.settings.connection_defaults,
            navigation_timeout_ms=self.settings.navigation_timeout_ms,
            navigation_wait_until=self.settings.navigation_wait_until,
        )
        self.cleaner.start()
        if self._install_hooks:
            self.hooks.install()

    async def close(self) -> None:
        LOGGER.info("Shutting down session orchestrator")
        try:
            if self._bridge is not None:
                await self._bridge.close()
        finally:
            self._bridge = None
            await self.cleaner.stop()
            self.hooks.uninstall()
            self.cache.cleanup()
            if self._playwright_manager is not None:
                await self._playwright.stop()
                self._playwright_manager = None
                self._playwright = None
            await self.resolver.aclose()
            await self.client.aclose()

    async def create_session(
        self, options: BrowserCreateRequest | dict[str, Any] | None = None
    ) -> str:
        return await self.client.create(options)

    async def resolve(self, session_id: str) -> DebugInfo:
        return await self.resolver.resolve(session_id)

    async def connect(self, session_id: str, **overrides: Any) -> tuple[Browser, Page]:
        """Open ``session_id``, resolve its endpoint and attach Playwright."""

        bridge = self.bridge
        debug_info = await self.resolver.resolve(session_id)
        return await bridge.connect(debug_info, overrides)

    async def navigate(self, url: str, **options: Any) -> Any:
        return await self.bridge.navigate(url, **options)

    async def evaluate(self, expression: str, *args: Any) -> Any:
        return await self.bridge.evaluate(expression, *args)

    async def screenshot(self, **options: Any) -> bytes:
        return await self.bridge.screenshot(**options)

    async def disconnect(self) -> None:
        await self.bridge.close()

    async def close_session(self, session_id: str) -> Any:
        return await self.client.close(session_id)

    async def delete_session(self, session_id: str) -> Any:
        return await self.client.delete(session_id)

    async def update_sessions(
        self,
        ids: Sequence[str],
        *,
        remark: str | None = None,
        browser_finger_print: BrowserFingerprint | dict[str, Any] | None = None,
    ) -> Any:
        return await self.client.update(
            ids, remark=remark, browser_finger_print=browser_finger_print
        )


__all__ = ["SessionOrchestrator"]
