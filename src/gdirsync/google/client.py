"""Shared async HTTP plumbing for the Google Workspace REST APIs.

Every service client derives from GoogleAPIClient, which provides bearer
authentication, JSON request helpers, nextPageToken pagination and a
uniform mapping from HTTP failures to exceptions.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)


class GoogleAPIError(Exception):
    """Base exception for Google API errors."""

    def __init__(
        self, message: str, status_code: int | None = None, response: dict | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class GoogleAuthError(GoogleAPIError):
    """Authentication or authorization failed."""

    pass


class GoogleNotFoundError(GoogleAPIError):
    """Resource not found."""

    pass


class GoogleConflictError(GoogleAPIError):
    """Resource already exists."""

    pass


class Credentials(Protocol):
    async def access_token(self, client: httpx.AsyncClient) -> str: ...


class GoogleAPIClient:
    """Async client base for a single Google REST API."""

    def __init__(
        self,
        base_url: str,
        credentials: Credentials,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._credentials = credentials
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "GoogleAPIClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------------
    # HTTP helpers
    # -------------------------------------------------------------------------

    async def _headers(self) -> dict[str, str]:
        """Get request headers with auth token."""
        token = await self._credentials.access_token(self._client)
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict | None = None,
        expected_status: list[int] | None = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        headers = await self._headers()
        try:
            response = await self._client.request(
                method, url, headers=headers, params=params, json=json
            )
        except httpx.HTTPError as e:
            raise GoogleAPIError(f"{method} {url} failed: {e}") from e
        return self._handle_response(response, expected_status=expected_status)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request."""
        return await self._request("GET", path, params=params)

    async def _post(self, path: str, json: dict | None = None) -> Any:
        """Make POST request."""
        return await self._request("POST", path, json=json, expected_status=[200, 201, 204])

    async def _put(self, path: str, json: dict | None = None) -> Any:
        """Make PUT request."""
        return await self._request("PUT", path, json=json, expected_status=[200, 204])

    async def _delete(self, path: str) -> Any:
        """Make DELETE request."""
        return await self._request("DELETE", path, expected_status=[200, 204])

    async def _paginate(
        self, path: str, items_key: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Collect every item of a listing by following nextPageToken."""
        items: list[dict[str, Any]] = []
        query = dict(params or {})
        while True:
            page = await self._get(path, params=query) or {}
            items.extend(page.get(items_key, []))
            token = page.get("nextPageToken")
            if not token:
                break
            query["pageToken"] = token
        logger.debug("Fetched %d %s from %s", len(items), items_key, path)
        return items

    def _handle_response(
        self,
        response: httpx.Response,
        expected_status: list[int] | None = None,
    ) -> Any:
        """Handle API response."""
        expected = expected_status or [200]

        if response.status_code == 404:
            raise GoogleNotFoundError(
                f"Resource not found: {response.request.url}",
                status_code=404,
            )

        if response.status_code == 409:
            raise GoogleConflictError(
                f"Resource already exists: {response.text}",
                status_code=409,
            )

        if response.status_code in (401, 403):
            raise GoogleAuthError(
                f"Not authorized ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

        if response.status_code not in expected:
            raise GoogleAPIError(
                f"Unexpected response {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None

        return response.json()
