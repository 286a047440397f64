"""Exception types raised by the orchestrator."""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for every error raised by this package."""


class ProtocolError(OrchestratorError):
    """The control API answered with an absent or malformed body."""


class ApiError(OrchestratorError):
    """The control API reported ``success: false``."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        self.message = message
        self.operation = operation
        prefix = f"{operation}: " if operation else ""
        super().__init__(f"{prefix}{message}")


class ValidationError(OrchestratorError, ValueError):
    """Caller supplied invalid arguments; raised before any network call."""


class IncompleteDebugInfoError(OrchestratorError):
    """An opened session did not report the fields needed to attach to it."""


class NoActivePageError(OrchestratorError):
    """A page operation was issued without a connected page."""


__all__ = [
    "ApiError",
    "IncompleteDebugInfoError",
    "NoActivePageError",
    "OrchestratorError",
    "ProtocolError",
    "ValidationError",
]
