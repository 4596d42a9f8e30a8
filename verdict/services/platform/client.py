"""Async client for the hosting platform's community API.

The game consumes three platform calls: a moderator-permission check,
community post creation (once per cycle) and username lookup. Transient
transport failures and 5xx responses are retried with exponential
backoff; anything still failing surfaces as PlatformError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from verdict.core.exceptions import PlatformError, RateLimitError

if TYPE_CHECKING:
    from verdict.core.config import Settings

logger: structlog.stdlib.BoundLogger = structlog.get_logger()


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code >= 500


class PlatformClient:
    """Async HTTP client for the hosting platform.

    Features:
    - Bearer-token authentication
    - Exponential backoff retry via tenacity on transient failures
    - Structured logging for all platform interactions
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._base_url = settings.platform_api_url.rstrip("/")
        self._token = settings.platform_api_token
        self._client = http_client or httpx.AsyncClient(timeout=settings.platform_timeout_seconds)
        self._owns_client = http_client is None

    async def close(self) -> None:
        """Close the underlying HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        reraise=True,
    )
    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        logger.debug("platform_request", method=method, url=url)
        response = await self._client.request(method, url, headers=self._headers(), json=json)

        if response.status_code == 429:
            retry_after = float(response.headers.get("Retry-After", "5"))
            logger.warning("platform_rate_limited", retry_after=retry_after)
            raise RateLimitError("Platform rate limit hit", retry_after=retry_after)

        if response.status_code != 404:
            response.raise_for_status()
        return response

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            return await self._request(method, path, json=json)
        except httpx.HTTPStatusError as exc:
            msg = f"Platform API error: {exc.response.status_code}"
            raise PlatformError(msg, details={"path": path}) from exc
        except httpx.TransportError as exc:
            msg = f"Platform connection error: {exc}"
            raise PlatformError(msg, details={"path": path}) from exc

    async def is_moderator(self, user_id: str, sub_id: str) -> bool:
        """Whether ``user_id`` holds any moderator permission in ``sub_id``."""
        response = await self._call("GET", f"/communities/{sub_id}/moderators/{user_id}")
        if response.status_code == 404:
            return False
        data: dict[str, Any] = response.json()
        return data.get("permissions") is not None

    async def create_post(self, sub_id: str, title: str) -> str:
        """Publish a community post and return its opaque id."""
        response = await self._call("POST", f"/communities/{sub_id}/posts", json={"title": title})
        if response.status_code == 404:
            msg = f"Community {sub_id} not found on platform"
            raise PlatformError(msg, details={"sub_id": sub_id})
        post_id: str = response.json()["id"]
        logger.info("platform_post_created", sub_id=sub_id, post_id=post_id)
        return post_id

    async def get_username(self, user_id: str) -> str | None:
        """Resolve a user id to a display name; None when the platform has no such user."""
        response = await self._call("GET", f"/users/{user_id}")
        if response.status_code == 404:
            return None
        name: str | None = response.json().get("username")
        return name

    async def ping(self) -> None:
        """Cheap reachability check used by the health endpoint."""
        await self._call("GET", "/health")
