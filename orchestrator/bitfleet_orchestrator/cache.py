"""Disposable on-disk copies of resolved connection data."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from .config import OrchestratorSettings
from .models import ConnectionConfig, DebugInfo

LOGGER = logging.getLogger(__name__)


class SessionStateCache:
    """Write and remove the cached connection config and debug info.

    The files are advisory: nothing in the orchestrator reads them back to
    decide how to connect, and losing them is never fatal.
    """

    def __init__(self, connection_config_path: Path, debug_info_path: Path) -> None:
        self.connection_config_path = Path(connection_config_path)
        self.debug_info_path = Path(debug_info_path)

    @classmethod
    def from_settings(cls, settings: OrchestratorSettings) -> "SessionStateCache":
        return cls(settings.connection_config_path, settings.debug_info_path)

    @property
    def paths(self) -> tuple[Path, Path]:
        return (self.connection_config_path, self.debug_info_path)

    def persist(self, config: ConnectionConfig, debug_info: DebugInfo) -> None:
        """Overwrite both artifacts with the latest resolution."""

        for path in self.paths:
            path.parent.mkdir(parents=True, exist_ok=True)
        self.connection_config_path.write_text(
            config.model_dump_json(indent=2), encoding="utf-8"
        )
        self.debug_info_path.write_text(
            debug_info.model_dump_json(indent=2, by_alias=True), encoding="utf-8"
        )
        LOGGER.debug("Cached connection artifacts in %s", self.connection_config_path.parent)

    def cleanup(self) -> None:
        """Delete both artifacts; never raises."""

        for path in self.paths:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                LOGGER.error("Failed to remove cached artifact %s: %s", path, exc)
            else:
                LOGGER.debug("Removed cached artifact %s", path)

    def load_debug_info(self) -> DebugInfo | None:
        raw = self._read(self.debug_info_path)
        if raw is None:
            return None
        try:
            return DebugInfo.model_validate(raw)
        except PydanticValidationError:
            LOGGER.warning("Ignoring malformed cached debug info at %s", self.debug_info_path)
            return None

    def load_connection_config(self) -> ConnectionConfig | None:
        raw = self._read(self.connection_config_path)
        if raw is None:
            return None
        try:
            return ConnectionConfig.model_validate(raw)
        except PydanticValidationError:
            LOGGER.warning(
                "Ignoring malformed cached connection config at %s", self.connection_config_path
            )
            return None

    @staticmethod
    def _read(path: Path) -> object | None:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            LOGGER.warning("Could not read cached artifact %s: %s", path, exc)
            return None


class PeriodicCacheCleaner:
    """Run :meth:`SessionStateCache.cleanup` on a fixed interval.

    Runs regardless of session activity so artifacts left behind by an
    abnormal exit are eventually removed.
    """

    def __init__(
        self,
        cache: SessionStateCache,
        *,
        interval: float,
        logger: logging.Logger | None = None,
    ) -> None:
        self._cache = cache
        self._interval = interval
        self._logger = logger or LOGGER
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._loop(), name="bitfleet-cache-cleanup")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run_once(self) -> None:
        self._logger.debug("Periodic cache cleanup")
        try:
            await asyncio.to_thread(self._cache.cleanup)
        except Exception as exc:
            self._logger.warning("Periodic cache cleanup failed: %s", exc)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.run_once()


__all__ = ["PeriodicCacheCleaner", "SessionStateCache"]
