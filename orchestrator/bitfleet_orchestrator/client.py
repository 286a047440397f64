"""HTTP client wrapper for the fingerprint browser control API."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from .config import OrchestratorSettings, SessionDefaults
from .errors import ProtocolError, ValidationError
from .models import (
    BrowserCreateRequest,
    BrowserFingerprint,
    BrowserUpdateRequest,
    OpenResult,
)
from .responses import validate_response

LOGGER = logging.getLogger(__name__)


class BitBrowserClient:
    """Async wrapper around the control API.

    Callers only deal with session identifiers and typed results; every HTTP
    concern (paths, JSON bodies, the ``{success, message, data}`` envelope)
    stays in this class.  Calls are never retried: a failure is logged and
    surfaces immediately.
    """

    def __init__(
        self,
        base_url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        session_defaults: SessionDefaults | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._session_defaults = session_defaults or SessionDefaults()
        if http_client is None:
            self._client = httpx.AsyncClient(
                base_url=base_url,
                headers=headers,
                timeout=timeout,
            )
            self._owns_client = True
        else:
            self._client = http_client
            self._owns_client = False

    @classmethod
    def from_settings(
        cls, settings: OrchestratorSettings, *, http_client: httpx.AsyncClient | None = None
    ) -> "BitBrowserClient":
        return cls(
            settings.api_base_url,
            headers=settings.api_headers,
            timeout=settings.request_timeout,
            session_defaults=settings.session_defaults,
            http_client=http_client,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client and release sockets."""

        if self._owns_client:
            await self._client.aclose()

    async def create(self, options: BrowserCreateRequest | dict[str, Any] | None = None) -> str:
        """Create a browser session and return its identifier."""

        request = _coerce(BrowserCreateRequest, options or {})
        payload = request.with_defaults(self._session_defaults).to_payload()
        data = await self._post("browser/update", payload, operation="create")
        session_id = data.get("id") if isinstance(data, dict) else None
        if not session_id:
            LOGGER.error("create: response data carries no session id: %s", data)
            raise ProtocolError("create: response data carries no session id")
        LOGGER.info("Browser session created with id %s", session_id)
        return str(session_id)

    async def open(self, session_id: str) -> OpenResult:
        """Open (start) the session and return the raw debug fields."""

        data = await self._post("browser/open", {"id": session_id}, operation="open")
        if not isinstance(data, dict):
            LOGGER.error("open: response data is not an object: %s", data)
            raise ProtocolError("open: response data is not an object")
        try:
            return OpenResult.model_validate(data)
        except PydanticValidationError as exc:
            LOGGER.error("Error in open: malformed debug fields: %s", exc)
            raise ProtocolError(f"open: malformed debug fields: {exc}") from exc

    async def close(self, session_id: str) -> Any:
        """Close the remote browser window; the session itself survives."""

        return await self._post("browser/close", {"id": session_id}, operation="close")

    async def delete(self, session_id: str) -> Any:
        """Permanently delete the session."""

        return await self._post("browser/delete", {"id": session_id}, operation="delete")

    async def update(
        self,
        ids: Sequence[str],
        *,
        remark: str | None = None,
        browser_finger_print: BrowserFingerprint | dict[str, Any] | None = None,
    ) -> Any:
        """Apply a partial update to every session in ``ids``."""

        if not ids:
            LOGGER.error("update: browser ids are required")
            raise ValidationError("Browser IDs are required for update")
        request = _coerce(
            BrowserUpdateRequest,
            {"ids": list(ids), "remark": remark, "browser_finger_print": browser_finger_print},
        )
        return await self._post("browser/update/partial", request.to_payload(), operation="update")

    async def _post(self, path: str, payload: dict[str, Any], *, operation: str) -> Any:
        LOGGER.debug("%s: POST %s %s", operation, path, payload)
        try:
            response = await self._client.post(path, json=payload)
            data = validate_response(response, operation=operation)
        except Exception as exc:
            LOGGER.error("Error in %s: %s", operation, exc)
            raise
        LOGGER.info("%s: %s", operation, data)
        return data


def _coerce(model: type[Any], value: Any) -> Any:
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except PydanticValidationError as exc:
        raise ValidationError(str(exc)) from exc


__all__ = ["BitBrowserClient"]
