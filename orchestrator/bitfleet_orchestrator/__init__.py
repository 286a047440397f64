"""Orchestration of remote fingerprint-browser sessions driven through Playwright."""

from shared import __version__

from .bridge import AutomationBridge
from .cache import PeriodicCacheCleaner, SessionStateCache
from .client import BitBrowserClient
from .config import OrchestratorSettings, SessionDefaults, load_settings
from .errors import (
    ApiError,
    IncompleteDebugInfoError,
    NoActivePageError,
    OrchestratorError,
    ProtocolError,
    ValidationError,
)
from .models import BrowserCreateRequest, ConnectionConfig, DebugInfo, OpenResult
from .orchestrator import SessionOrchestrator
from .resolver import DebugEndpointResolver

__all__ = [
    "ApiError",
    "AutomationBridge",
    "BitBrowserClient",
    "BrowserCreateRequest",
    "ConnectionConfig",
    "DebugEndpointResolver",
    "DebugInfo",
    "IncompleteDebugInfoError",
    "NoActivePageError",
    "OpenResult",
    "OrchestratorError",
    "OrchestratorSettings",
    "PeriodicCacheCleaner",
    "ProtocolError",
    "SessionDefaults",
    "SessionOrchestrator",
    "SessionStateCache",
    "ValidationError",
    "__version__",
    "load_settings",
]
