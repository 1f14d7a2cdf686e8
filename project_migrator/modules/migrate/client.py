"""Supabase Management API client."""
import json
import httpx
from typing import Any, AsyncIterator
from fastapi import Depends

from project_migrator.core.config import settings
from project_migrator.core.exceptions import MigratorError
from project_migrator.core.logging import get_logger
from project_migrator.core.session import require_access_token

logger = get_logger(__name__)


class ManagementAPIError(MigratorError):
    """Raised when the Management API call fails or answers with a non-2xx status."""

    status_code = 500

    def __init__(self, message: str, upstream_status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class ManagementAPIClient:
    """
    Client for the Supabase Management API, authorized with a user's
    OAuth access token.

    Supports:
    - Fetching raw configuration snapshots
    - Listing projects
    """

    def __init__(
        self,
        access_token: str,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Management API client."""
        self.base_url = (base_url or settings.MANAGEMENT_API_URL).rstrip("/")
        self.timeout = timeout or settings.MANAGEMENT_API_TIMEOUT
        self._access_token = access_token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with bearer authentication."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self._access_token}",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ManagementAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def get_text(self, path: str) -> str:
        """
        GET a Management API path and return the body untouched.

        Args:
            path: Path relative to the API root, e.g. "/projects/abc/secrets"

        Returns:
            Response body text

        Raises:
            ManagementAPIError: on transport failure or non-2xx status
        """
        client = await self._get_client()
        try:
            response = await client.get(path)
        except httpx.HTTPError as e:
            logger.error("Management API request failed", path=path, error=str(e))
            raise ManagementAPIError(f"Request failed: {e!r}") from e

        if response.is_success:
            return response.text

        logger.warning(
            "Management API returned an error",
            path=path,
            status_code=response.status_code,
        )
        raise ManagementAPIError(
            f"HTTP request failed with status {response.status_code}: {response.text}",
            upstream_status=response.status_code,
            body=response.text,
        )

    async def list_projects(self) -> list[dict[str, Any]]:
        """List projects the access token can see."""
        text = await self.get_text("/projects")
        try:
            projects = json.loads(text)
        except ValueError as e:
            raise ManagementAPIError(f"Error parsing project list: {e}", body=text) from e

        if not isinstance(projects, list) or not all(isinstance(p, dict) for p in projects):
            logger.warning("Unexpected project list shape", body=text[:200])
            raise ManagementAPIError(
                f"Unexpected project list, expected an array of objects: {text}",
                body=text,
            )
        return projects


async def get_management_client(
    access_token: str = Depends(require_access_token),
) -> AsyncIterator[ManagementAPIClient]:
    """FastAPI dependency yielding a client bound to the session's access token."""
    async with ManagementAPIClient(access_token) as client:
        yield client
