"""
Backend HTTP Client
===================

Thin transport over a shared ``requests.Session``. Every call returns an
:class:`ApiResponse` produced by the single envelope normalizer, and every
failure (HTTP status, connection, timeout, undecodable body) is re-raised as
:class:`~hydrowatch.domain.exceptions.ApiError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from hydrowatch.constants import Timeouts
from hydrowatch.domain.exceptions import ApiError

logger = logging.getLogger(__name__)

# Keys that mark a body as a pure status message rather than a resource
_MESSAGE_ONLY_KEYS = frozenset({"message", "success", "status", "timestamp"})


@dataclass(frozen=True)
class ApiResponse:
    """Normalized ``{data, message}`` envelope."""

    data: Any = None
    message: str | None = None


def unwrap_envelope(body: Any) -> ApiResponse:
    """
    Normalize any backend body into an ApiResponse.

    - ``{"data": ..., "message": ...}`` is unwrapped.
    - ``{"message": ...}`` (optionally with success/status) carries no data.
    - A bare list or resource object becomes ``data``.
    - An empty body yields ``ApiResponse(None, None)``.
    """
    if body is None or body == "" or body == b"":
        return ApiResponse()
    if isinstance(body, dict):
        message = body.get("message") if isinstance(body.get("message"), str) else None
        if "data" in body:
            return ApiResponse(data=body["data"], message=message)
        if body and set(body) <= _MESSAGE_ONLY_KEYS:
            return ApiResponse(data=None, message=message)
    return ApiResponse(data=body)


class ApiClient:
    """HTTP client for the monitoring backend."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = Timeouts.HTTP_REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})

    def get(self, path: str, *, params: dict[str, Any] | None = None) -> ApiResponse:
        return self.request("GET", path, params=params)

    def post(self, path: str, *, json: Any = None, params: dict[str, Any] | None = None) -> ApiResponse:
        return self.request("POST", path, json=json, params=params)

    def put(self, path: str, *, json: Any = None, params: dict[str, Any] | None = None) -> ApiResponse:
        return self.request("PUT", path, json=json, params=params)

    def delete(self, path: str, *, params: dict[str, Any] | None = None) -> ApiResponse:
        return self.request("DELETE", path, params=params)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> ApiResponse:
        """
        Perform one request and normalize the body.

        Raises:
            ApiError: on any transport failure or non-2xx status
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = {key: value for key, value in (params or {}).items() if value is not None} or None
        detail = {"method": method, "path": path}

        try:
            response = self._session.request(method, url, params=query, json=json, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error("API %s %s timed out after %ss", method, path, self.timeout)
            raise ApiError(f"Request timed out: {method} {path}", detail=detail) from None
        except requests.exceptions.RequestException as exc:
            logger.error("API %s %s failed without response: %s", method, path, exc)
            raise ApiError(f"No response from backend: {exc}", detail=detail) from exc

        if not response.ok:
            message = _error_message(response)
            logger.error("API %s %s returned %s: %s", method, path, response.status_code, message)
            raise ApiError(message, status_code=response.status_code, detail={**detail, "status": response.status_code})

        if not response.content:
            return ApiResponse()
        try:
            body = response.json()
        except ValueError:
            # Plain-text bodies are treated as a message
            return ApiResponse(message=response.text.strip() or None)
        return unwrap_envelope(body)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code} {response.reason or ''}".strip()
