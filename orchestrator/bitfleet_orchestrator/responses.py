"""Uniform interpretation of control API responses."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from .errors import ApiError, ProtocolError
from .models import ApiResponse

UNKNOWN_ERROR_MESSAGE = "Unknown error"


def validate_response(response: httpx.Response, *, operation: str | None = None) -> Any:
    """Return the ``data`` payload of a successful control API response.

    Raises :class:`ProtocolError` when the body is missing or is not the
    ``{success, message, data}`` envelope, and :class:`ApiError` when the
    server reports ``success: false``.  Nothing is read from ``data`` before
    both checks pass.
    """

    if not response.content:
        raise ProtocolError(f"{operation or 'request'}: empty response body (HTTP {response.status_code})")
    try:
        payload = response.json()
    except ValueError as exc:
        raise ProtocolError(f"{operation or 'request'}: response body is not JSON") from exc
    if not isinstance(payload, dict):
        raise ProtocolError(f"{operation or 'request'}: response body is not an object")
    try:
        envelope = ApiResponse.model_validate(payload)
    except PydanticValidationError as exc:
        raise ProtocolError(f"{operation or 'request'}: malformed response envelope") from exc

    if not envelope.success:
        raise ApiError(envelope.message or UNKNOWN_ERROR_MESSAGE, operation=operation)

    return {} if envelope.data is None else envelope.data


__all__ = ["UNKNOWN_ERROR_MESSAGE", "validate_response"]
