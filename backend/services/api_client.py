"""JSON client for the video metadata API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the metadata API."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(message)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return response.reason_phrase or f"HTTP {response.status_code}"


class ApiClient:
    """
    Thin wrapper over httpx.AsyncClient for the metadata API.

    Sends/receives JSON, attaches the bearer token when one is configured,
    returns None for empty (e.g. 204) bodies and raises ApiError on non-2xx.
    """

    def __init__(self, http: httpx.AsyncClient, *, access_token: str | None = None) -> None:
        self._http = http
        self._access_token = access_token

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    async def request(self, method: str, path: str, *, json: Any = None, opaque: bool = False) -> Any:
        """Send one call; ``opaque`` responses are checked for status only, their body is ignored."""
        response = await self._http.request(method, path, json=json, headers=self._headers())
        if response.is_error:
            message = _error_message(response)
            logger.info("[api] %s %s -> %d %s", method, path, response.status_code, message)
            raise ApiError(response.status_code, message)
        if opaque or response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, payload: Any) -> Any:
        return await self.request("POST", path, json=payload)

    async def patch(self, path: str, payload: Any) -> Any:
        return await self.request("PATCH", path, json=payload, opaque=True)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path, opaque=True)
