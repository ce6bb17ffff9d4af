"""
User Admin Client
=================
Async client for the Appwrite-style users API: email lookup and password
updates.
"""

import logging
import os
from urllib.parse import quote
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type, before_sleep_log

from ..exceptions import (
    UpstreamServiceError,
    UpstreamUnavailableError,
    UpstreamTimeoutError,
    UpstreamAuthError,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "user-admin"


@dataclass
class UserAdminConfig:
    """Connection settings for the user-admin service."""
    endpoint: str = field(default_factory=lambda: os.environ.get("APPWRITE_ENDPOINT", "http://localhost/v1"))
    project_id: str = field(default_factory=lambda: os.environ.get("APPWRITE_PROJECT_ID", ""))
    api_key: str = field(default_factory=lambda: os.environ.get("APPWRITE_API_KEY", ""))
    timeout: float = 10.0


class _NotFound(Exception):
    pass


class UserAdminClient:
    """
    Directory lookup and password mutation against the user-admin service.

    Retries network errors and 5xx responses; everything else maps straight
    to an UpstreamServiceError subclass.
    """

    def __init__(
        self,
        config: Optional[UserAdminConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config if config is not None else UserAdminConfig()
        self.client = httpx.AsyncClient(
            base_url=self.config.endpoint.rstrip("/"),
            timeout=self.config.timeout,
            headers=self._get_headers(),
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    def _get_headers(self) -> Dict[str, str]:
        return {
            "X-Appwrite-Project": self.config.project_id,
            "X-Appwrite-Key": self.config.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def aclose(self):
        """Close the underlying HTTP client."""
        await self.client.aclose()

    def _map_exception(self, exc: Exception) -> Exception:
        """Map httpx exceptions to upstream service exceptions."""
        if isinstance(exc, httpx.TimeoutException):
            return UpstreamTimeoutError("Request timed out", service=SERVICE_NAME)
        if isinstance(exc, (httpx.ConnectError, httpx.NetworkError)):
            return UpstreamUnavailableError(f"Failed to connect: {exc}", service=SERVICE_NAME)
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            text = exc.response.text
            if status == 404:
                return _NotFound()
            if status in (401, 403):
                return UpstreamAuthError("Unauthorized", service=SERVICE_NAME, status_code=status)
            if status >= 500:
                return UpstreamUnavailableError("Server error", service=SERVICE_NAME, status_code=status, details=text)
            return UpstreamServiceError(f"HTTP {status} Error", service=SERVICE_NAME, status_code=status, details=text)

        return UpstreamServiceError(f"Unexpected error: {exc}", service=SERVICE_NAME)

    @retry(
        retry=retry_if_exception_type(UpstreamUnavailableError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _request(self, method: str, path: str, **kwargs) -> Optional[Dict[str, Any]]:
        """Execute request with retries and error handling."""
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._map_exception(e) from e

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get_email(self, user_id: str) -> Optional[str]:
        """Email address of the user, or None if the user does not exist."""
        try:
            user = await self._request("GET", f"/users/{quote(user_id, safe='')}")
        except _NotFound:
            return None
        email = (user or {}).get("email") or ""
        return email.strip() or None

    async def set_password(self, user_id: str, new_password: str) -> None:
        try:
            await self._request("PATCH", f"/users/{quote(user_id, safe='')}/password", json={"password": new_password})
        except _NotFound as e:
            raise UpstreamServiceError("User not found", service=SERVICE_NAME, status_code=404) from e
        logger.info("Password updated for user %s", user_id)
