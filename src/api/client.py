# manages the connection to the storefront api, internal to the api package
from __future__ import annotations

from typing import Any, Optional

import httpx

from utils.config import DEFAULT_API_URL
from utils.logger import get_logger

_logger = get_logger(__name__)


class ApiError(Exception):
    """
    Normalized failure of an api call.

    Raised for transport errors (status is None), HTTP error statuses and
    envelopes with `success: false`. `message` is the server's message when it
    sent one, otherwise a generic fallback.
    """

    def __init__(
        self, message: str, status: Optional[int] = None, data: Any = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data


def _handle_response(response: httpx.Response) -> Any:
    """Unwrap the {success, data?, message?} envelope, return `data`."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        payload = {}

    if response.status_code >= 400 or not payload.get("success"):
        message = (
            payload.get("message")
            or f"Request failed with status code {response.status_code}"
        )
        raise ApiError(message, status=response.status_code, data=payload)

    return payload.get("data")


class ApiClient:
    """
    Thin async wrapper over httpx.AsyncClient.
    Attaches the bearer token (if any) to every request.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self._token: Optional[str] = None

    @property
    def has_token(self) -> bool:
        return self._token is not None

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    async def request(self, method: str, path: str, json: Any = None) -> Any:
        headers = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = await self._client.request(
                method, path, json=json, headers=headers
            )
            return _handle_response(response)
        except httpx.RequestError as e:
            message = str(e) or "An error occurred"
            _logger.error(f"API Error: {method} {path} -> unreachable: {message}")
            raise ApiError(message) from e
        except ApiError as e:
            _logger.error(f"API Error: {method} {path} -> {e.status}: {e.message}")
            raise

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
