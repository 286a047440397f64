from __future__ import annotations

import logging

import httpx
import pytest
import pytest_asyncio

from bitfleet_orchestrator.client import BitBrowserClient
from bitfleet_orchestrator.errors import ApiError, IncompleteDebugInfoError
from bitfleet_orchestrator.resolver import (
    DebugEndpointResolver,
    normalize_ws_address,
    port_of,
)
from fakes import CONTROL_URL, FakeControlApi


@pytest_asyncio.fixture()
async def resolver(fake_api: FakeControlApi):
    transport = fake_api.transport()
    async with httpx.AsyncClient(base_url=CONTROL_URL, transport=transport) as control_http:
        async with httpx.AsyncClient(transport=transport) as discovery_http:
            client = BitBrowserClient(CONTROL_URL, http_client=control_http)
            yield DebugEndpointResolver(
                client, discovery_timeout=0.5, http_client=discovery_http
            )


@pytest.mark.asyncio()
async def test_falls_back_to_default_address_without_discovery_body(
    resolver: DebugEndpointResolver, fake_api: FakeControlApi
) -> None:
    info = await resolver.resolve("session-1")

    assert info.debugger_address == "ws://127.0.0.1:9222"
    assert info.chrome_port == "9222"
    assert info.driver_path == "/path"
    assert fake_api.paths == ["/browser/open", "http://127.0.0.1:9222/json/version"]


@pytest.mark.asyncio()
async def test_discovered_url_wins(resolver: DebugEndpointResolver, fake_api: FakeControlApi) -> None:
    discovered = "ws://127.0.0.1:9222/devtools/browser/abc"
    fake_api.discovery = lambda request: httpx.Response(
        200, json={"Browser": "Chrome/124.0", "webSocketDebuggerUrl": discovered}
    )

    info = await resolver.resolve("session-1")

    assert info.debugger_address == discovered
    assert info.chrome_port == "9222"


@pytest.mark.parametrize(
    "discovery",
    [
        lambda request: httpx.Response(200, json={"Browser": "Chrome/124.0"}),
        lambda request: httpx.Response(200, json={"webSocketDebuggerUrl": ""}),
        lambda request: httpx.Response(200, json=["unexpected"]),
        lambda request: httpx.Response(500, json={"error": "boom"}),
        lambda request: httpx.Response(200, content=b"not json"),
    ],
)
@pytest.mark.asyncio()
async def test_unusable_discovery_keeps_default(
    resolver: DebugEndpointResolver,
    fake_api: FakeControlApi,
    discovery,
    caplog: pytest.LogCaptureFixture,
) -> None:
    fake_api.discovery = discovery

    with caplog.at_level(logging.WARNING, logger="bitfleet_orchestrator.resolver"):
        info = await resolver.resolve("session-1")

    assert info.debugger_address == "ws://127.0.0.1:9222"
    assert "Debugger discovery" in caplog.text


@pytest.mark.parametrize("error", [httpx.ConnectError, httpx.ReadTimeout])
@pytest.mark.asyncio()
async def test_network_failure_keeps_default(
    resolver: DebugEndpointResolver, fake_api: FakeControlApi, error: type[httpx.HTTPError]
) -> None:
    def discovery(request: httpx.Request) -> httpx.Response:
        raise error("unreachable", request=request)

    fake_api.discovery = discovery

    info = await resolver.resolve("session-1")

    assert info.debugger_address == "ws://127.0.0.1:9222"
    assert info.chrome_port == "9222"


@pytest.mark.asyncio()
async def test_existing_scheme_is_not_doubled(
    resolver: DebugEndpointResolver, fake_api: FakeControlApi
) -> None:
    fake_api.open_data = {"http": "wss://remote.example:9443", "driver": "/path"}

    info = await resolver.resolve("session-1")

    assert info.debugger_address == "wss://remote.example:9443"
    assert info.chrome_port == "9443"
    assert fake_api.paths[-1] == "http://remote.example:9443/json/version"


@pytest.mark.asyncio()
async def test_missing_http_field_is_incomplete(
    resolver: DebugEndpointResolver, fake_api: FakeControlApi
) -> None:
    fake_api.open_data = {"driver": "/path"}

    with pytest.raises(IncompleteDebugInfoError):
        await resolver.resolve("session-1")

    assert fake_api.paths == ["/browser/open"]


@pytest.mark.asyncio()
async def test_open_failure_propagates(resolver: DebugEndpointResolver, fake_api: FakeControlApi) -> None:
    fake_api.responses["/browser/open"] = {"success": False, "message": "window limit reached"}

    with pytest.raises(ApiError, match="window limit reached"):
        await resolver.resolve("session-1")


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ("127.0.0.1:9222", "ws://127.0.0.1:9222"),
        ("ws://127.0.0.1:9222", "ws://127.0.0.1:9222"),
        ("wss://remote.example:443/devtools", "wss://remote.example:443/devtools"),
    ],
)
def test_normalize_ws_address(address: str, expected: str) -> None:
    assert normalize_ws_address(address) == expected


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ("ws://127.0.0.1:9222", "9222"),
        ("ws://127.0.0.1:9222/devtools/browser/abc", "9222"),
        ("127.0.0.1:9333", "9333"),
        ("ws://[::1]:9222/devtools/browser/abc", "9222"),
        ("ws://localhost", ""),
        ("ws://localhost:notaport", ""),
    ],
)
def test_port_of(address: str, expected: str) -> None:
    assert port_of(address) == expected


@pytest.mark.asyncio()
async def test_discovery_is_bounded_by_configured_timeout(fake_api: FakeControlApi) -> None:
    seen: list[dict[str, float]] = []

    def discovery(request: httpx.Request) -> httpx.Response:
        seen.append(request.extensions["timeout"])
        return httpx.Response(200, json={})

    fake_api.discovery = discovery
    transport = fake_api.transport()
    async with httpx.AsyncClient(base_url=CONTROL_URL, transport=transport) as control_http:
        async with httpx.AsyncClient(transport=transport, timeout=60.0) as discovery_http:
            client = BitBrowserClient(CONTROL_URL, http_client=control_http)
            resolver = DebugEndpointResolver(
                client, discovery_timeout=1.25, http_client=discovery_http
            )
            await resolver.resolve("session-1")

    assert len(seen) == 1
    assert set(seen[0].values()) == {1.25}


@pytest.mark.asyncio()
async def test_numeric_core_version_still_resolves(
    resolver: DebugEndpointResolver, fake_api: FakeControlApi
) -> None:
    fake_api.open_data = {"http": "127.0.0.1:9222", "driver": "/path", "coreVersion": 124, "pid": 1}

    info = await resolver.resolve("session-1")

    assert info.debugger_address == "ws://127.0.0.1:9222"
