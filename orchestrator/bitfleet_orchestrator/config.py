"""Configuration models for the session orchestrator."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ConnectionConfig, ProxyType


class SessionDefaults(BaseModel):
    """Values used when callers omit optional fields on session creation."""

    name: Annotated[str, Field(min_length=1)] = "puppeteer"
    remark: str = ""
    proxy_method: int = 2
    proxy_type: ProxyType = "noproxy"
    core_version: str = "124"


class OrchestratorSettings(BaseSettings):
    """Runtime settings for the orchestrator."""

    # ``BITFLEET_`` prefixes every environment override, nested models use
    # ``__`` (``BITFLEET_SESSION_DEFAULTS__NAME``).  ``.env`` is loaded for
    # local development convenience.
    model_config = SettingsConfigDict(
        env_prefix="BITFLEET_", env_file=".env", env_nested_delimiter="__"
    )

    # Control API of the fingerprint browser (local BitBrowser daemon).
    api_base_url: str = "http://127.0.0.1:54345"
    api_headers: dict[str, str] = Field(
        default_factory=lambda: {"Content-Type": "application/json"}
    )
    request_timeout: Annotated[float, Field(gt=0)] = 30.0

    session_defaults: SessionDefaults = Field(default_factory=SessionDefaults)
    # Static automation defaults; per-connection overrides are merged on top.
    connection_defaults: ConnectionConfig = Field(default_factory=ConnectionConfig)

    navigation_timeout_ms: Annotated[float, Field(ge=0)] = 30_000
    navigation_wait_until: Literal["commit", "domcontentloaded", "load", "networkidle"] = (
        "networkidle"
    )

    # Upper bound for the ``/json/version`` round trip.  Discovery is best
    # effort, so a slow endpoint only degrades resolution.
    discovery_timeout: Annotated[float, Field(gt=0, le=60)] = 5.0

    # Disposable copies of the resolved connection data.
    cache_dir: Path = Path(".bitfleet")
    connection_config_filename: str = "connection_config.json"
    debug_info_filename: str = "debug_info.json"
    cleanup_interval: Annotated[float, Field(gt=0, le=86_400)] = 3600

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def connection_config_path(self) -> Path:
        return self.cache_dir / self.connection_config_filename

    @property
    def debug_info_path(self) -> Path:
        return self.cache_dir / self.debug_info_filename


@lru_cache
def load_settings() -> OrchestratorSettings:
    """Return cached settings instance."""

    return OrchestratorSettings()


__all__ = ["OrchestratorSettings", "SessionDefaults", "load_settings"]
