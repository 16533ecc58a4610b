"""Shared HTTP error translation for remote drivers."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from ..exceptions import (
    ConflictError,
    MalformedError,
    NotFoundError,
    StorageError,
    TransientError,
    UnauthorizedError,
)


@contextmanager
def http_errors(path: str) -> Iterator[None]:
    """Translate transport failures into transient storage errors."""
    try:
        yield
    except httpx.TimeoutException as e:
        raise TransientError(f"Timed out accessing {path}", path=path) from e
    except httpx.TransportError as e:
        raise TransientError(f"Network error accessing {path}: {e}", path=path) from e


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        message = payload.get("message")
        if message is None and isinstance(payload.get("error"), dict):
            message = payload["error"].get("message")
        if message:
            return str(message)
    return response.text[:200]


def check_response(response: httpx.Response, path: str) -> None:
    """Raise the storage error matching an unsuccessful response."""
    status = response.status_code
    if status < 400:
        return

    detail = _error_detail(response)
    message = f"Backend returned {status} for {path}: {detail}"
    if status in (401, 403):
        raise UnauthorizedError(message, path=path)
    if status == 404:
        raise NotFoundError(path)
    if status in (409, 412, 422):
        raise ConflictError(message, path=path)
    if status == 429 or status >= 500:
        raise TransientError(message, path=path)
    raise StorageError(message, path=path)


def json_payload(response: httpx.Response, path: str) -> Any:
    """Decode a JSON response body."""
    try:
        return response.json()
    except ValueError as e:
        raise MalformedError(path, f"response is not JSON: {e}") from e
