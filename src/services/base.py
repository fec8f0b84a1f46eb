# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared httpx plumbing for external service clients."""

import logging
from typing import Any

import httpx

from src.services.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)


def bearer_headers(token: str) -> dict[str, str]:
    """Build the Authorization header for a bearer token."""
    return {"Authorization": f"Bearer {token}"}


class ServiceClient:
    """Base class holding one httpx.AsyncClient per external service.

    Subclasses set service_name and call _request(), which turns transport
    errors into UpstreamServiceError. Status handling is left to the
    subclass because each service signals failure differently.

    Attributes:
        service_name: Name used in logs and errors.
        _client: Underlying HTTP client.
    """

    service_name = "service"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the service.
            timeout: Request timeout in seconds.
            transport: Optional transport (tests pass httpx.MockTransport).
        """
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, translating transport failures.

        Raises:
            UpstreamServiceError: If the service cannot be reached or times out.
        """
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s request %s %s failed: %s", self.service_name, method, path, str(e))
            raise UpstreamServiceError(
                f"Request {method} {path} failed: {type(e).__name__}",
                service=self.service_name,
            ) from e

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        """Raise UpstreamServiceError for any non-2xx response."""
        if response.is_success:
            return
        logger.error(
            "%s %s returned %d: %s",
            self.service_name,
            operation,
            response.status_code,
            response.text[:500],
        )
        raise UpstreamServiceError(
            f"{operation} failed",
            service=self.service_name,
            status_code=response.status_code,
            response_body=response.text,
        )

    def _json(self, response: httpx.Response, operation: str) -> Any:
        """Decode a JSON body, treating malformed bodies as upstream failures."""
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamServiceError(
                f"{operation} returned a non-JSON body",
                service=self.service_name,
                status_code=response.status_code,
                response_body=response.text,
            ) from e
