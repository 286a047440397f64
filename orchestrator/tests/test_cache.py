from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import pytest

from bitfleet_orchestrator.cache import PeriodicCacheCleaner, SessionStateCache
from bitfleet_orchestrator.config import OrchestratorSettings
from bitfleet_orchestrator.models import ConnectionConfig, DebugInfo


@pytest.fixture
def cache(tmp_path: Path) -> SessionStateCache:
    return SessionStateCache(
        tmp_path / "state" / "connection_config.json",
        tmp_path / "state" / "debug_info.json",
    )


def _debug_info() -> DebugInfo:
    return DebugInfo(
        driver_path="/path", debugger_address="ws://127.0.0.1:9222", chrome_port="9222"
    )


def test_persist_writes_both_artifacts(cache: SessionStateCache) -> None:
    config = ConnectionConfig().for_endpoint("ws://127.0.0.1:9222")

    cache.persist(config, _debug_info())

    debug = json.loads(cache.debug_info_path.read_text(encoding="utf-8"))
    assert debug == {
        "driverPath": "/path",
        "debuggerAddress": "ws://127.0.0.1:9222",
        "chromePort": "9222",
    }
    stored = json.loads(cache.connection_config_path.read_text(encoding="utf-8"))
    assert stored["browser_ws_endpoint"] == "ws://127.0.0.1:9222"
    assert stored["browser_url"] is None


def test_persist_overwrites_previous_contents(cache: SessionStateCache) -> None:
    cache.persist(ConnectionConfig(headless=True), _debug_info())
    replacement = DebugInfo(debugger_address="ws://10.0.0.5:9333", chrome_port="9333")

    cache.persist(ConnectionConfig(), replacement)

    assert cache.load_debug_info() == replacement
    assert cache.load_connection_config() == ConnectionConfig()


def test_cleanup_is_idempotent(cache: SessionStateCache) -> None:
    cache.persist(ConnectionConfig(), _debug_info())

    cache.cleanup()
    cache.cleanup()

    assert not cache.connection_config_path.exists()
    assert not cache.debug_info_path.exists()


def test_cleanup_without_files_does_not_raise(cache: SessionStateCache) -> None:
    cache.cleanup()
    cache.cleanup()


def test_cleanup_logs_and_swallows_os_errors(
    cache: SessionStateCache, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def deny(self: Path, missing_ok: bool = False) -> None:
        raise PermissionError("read-only cache directory")

    monkeypatch.setattr(Path, "unlink", deny)

    with caplog.at_level(logging.ERROR, logger="bitfleet_orchestrator.cache"):
        cache.cleanup()

    assert "read-only cache directory" in caplog.text


def test_loads_are_advisory(cache: SessionStateCache) -> None:
    assert cache.load_debug_info() is None
    assert cache.load_connection_config() is None

    cache.debug_info_path.parent.mkdir(parents=True)
    cache.debug_info_path.write_text("{not json", encoding="utf-8")
    cache.connection_config_path.write_text(json.dumps({"headless": "maybe"}), encoding="utf-8")

    assert cache.load_debug_info() is None
    assert cache.load_connection_config() is None


def test_from_settings_uses_configured_paths(tmp_path: Path) -> None:
    settings = OrchestratorSettings(cache_dir=tmp_path, debug_info_filename="debug.json")

    cache = SessionStateCache.from_settings(settings)

    assert cache.debug_info_path == tmp_path / "debug.json"
    assert cache.connection_config_path == tmp_path / "connection_config.json"


@pytest.mark.asyncio()
async def test_periodic_cleaner_removes_artifacts(cache: SessionStateCache) -> None:
    cache.persist(ConnectionConfig(), _debug_info())
    cleaner = PeriodicCacheCleaner(cache, interval=0.01)

    cleaner.start()
    cleaner.start()
    try:
        async def _wait_until_clean() -> None:
            while cache.debug_info_path.exists() or cache.connection_config_path.exists():
                await asyncio.sleep(0.005)

        await asyncio.wait_for(_wait_until_clean(), timeout=1.0)
        assert cleaner.running
    finally:
        await cleaner.stop()

    assert not cleaner.running
    await cleaner.stop()


@pytest.mark.asyncio()
async def test_periodic_cleaner_keeps_running_without_files(cache: SessionStateCache) -> None:
    cleaner = PeriodicCacheCleaner(cache, interval=0.005)
    cleaner.start()
    try:
        await asyncio.sleep(0.05)
        assert cleaner.running
    finally:
        await cleaner.stop()


@pytest.mark.asyncio()
async def test_periodic_cleaner_survives_failing_cleanup(
    cache: SessionStateCache, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    calls: list[int] = []

    def _failing_cleanup() -> None:
        calls.append(1)
        raise RuntimeError("cannot schedule new futures after shutdown")

    monkeypatch.setattr(cache, "cleanup", _failing_cleanup)
    cleaner = PeriodicCacheCleaner(cache, interval=0.005)

    with caplog.at_level(logging.WARNING, logger="bitfleet_orchestrator.cache"):
        await cleaner.run_once()
        cleaner.start()
        try:
            async def _wait_for_calls() -> None:
                while len(calls) < 3:
                    await asyncio.sleep(0.005)

            await asyncio.wait_for(_wait_for_calls(), timeout=1.0)
            assert cleaner.running
        finally:
            await cleaner.stop()

    assert "Periodic cache cleanup failed" in caplog.text
