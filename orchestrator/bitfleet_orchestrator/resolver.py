"""Resolution of a session's DevTools WebSocket endpoint."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

import httpx

from .client import BitBrowserClient
from .errors import IncompleteDebugInfoError
from .models import DebugInfo

LOGGER = logging.getLogger(__name__)

DISCOVERY_PATH = "/json/version"
DEFAULT_DISCOVERY_TIMEOUT = 5.0
_WS_SCHEMES = ("ws://", "wss://")


def normalize_ws_address(address: str) -> str:
    """Prefix ``address`` with ``ws://`` unless it already names a WebSocket scheme."""

    if address.startswith(_WS_SCHEMES):
        return address
    return f"ws://{address}"


def port_of(address: str) -> str:
    """Return the port of ``ws://host:port[/path]`` (or bare ``host:port``) as text.

    The address is parsed as a URL rather than split on ``:`` so IPv6 hosts
    and trailing paths do not shift the result.  Missing ports yield ``""``.
    """

    parts = urlsplit(address if "://" in address else f"//{address}")
    try:
        port = parts.port
    except ValueError:
        return ""
    return "" if port is None else str(port)


class DebugEndpointResolver:
    """Open a session and work out the WebSocket URL an automation client should use.

    The control API reports a generic ``host:port``; the browser's own
    ``/json/version`` endpoint reports the negotiated debugger URL.  The
    latter wins whenever it answers, the former is the fallback.
    """

    def __init__(
        self,
        client: BitBrowserClient,
        *,
        discovery_timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client
        self._discovery_timeout = discovery_timeout
        if http_client is None:
            self._http = httpx.AsyncClient(timeout=discovery_timeout)
            self._owns_http = True
        else:
            self._http = http_client
            self._owns_http = False

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def resolve(self, session_id: str) -> DebugInfo:
        opened = await self._client.open(session_id)
        if not opened.http:
            LOGGER.error("Session %s opened without an http debug address", session_id)
            raise IncompleteDebugInfoError(
                f"Session {session_id} did not report an http debug address"
            )

        address = normalize_ws_address(opened.http)
        discovered = await self.discover(address)
        if discovered:
            LOGGER.info("Using discovered debugger URL %s for session %s", discovered, session_id)
            address = discovered
        else:
            LOGGER.info("Using default debugger address %s for session %s", address, session_id)

        return DebugInfo(
            driver_path=opened.driver,
            debugger_address=address,
            chrome_port=port_of(address),
        )

    async def discover(self, address: str) -> str | None:
        """Query ``/json/version`` next to ``address``; ``None`` on any failure."""

        netloc = urlsplit(normalize_ws_address(address)).netloc
        url = f"http://{netloc}{DISCOVERY_PATH}"
        try:
            response = await self._http.get(url, timeout=self._discovery_timeout)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            LOGGER.warning("Debugger discovery via %s failed, keeping %s: %s", url, address, exc)
            return None

        ws_url = payload.get("webSocketDebuggerUrl") if isinstance(payload, dict) else None
        if not isinstance(ws_url, str) or not ws_url:
            LOGGER.warning(
                "Debugger discovery via %s returned no webSocketDebuggerUrl, keeping %s",
                url,
                address,
            )
            return None
        return ws_url


__all__ = [
    "DISCOVERY_PATH",
    "DebugEndpointResolver",
    "normalize_ws_address",
    "port_of",
]
