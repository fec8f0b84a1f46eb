# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by external service clients."""


class UpstreamServiceError(Exception):
    """An external service call failed or returned an unusable response.

    Callers treat every upstream failure the same way: the enclosing
    request fails with a generic server error and nothing is retried.

    Attributes:
        message: Human-readable error description.
        service: Name of the external service.
        status_code: HTTP status code, if a response was received.
        response_body: Raw response body, if a response was received.
    """

    def __init__(
        self,
        message: str,
        service: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        self.message = message
        self.service = service
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with service and status code."""
        base = f"{self.service}: {self.message}"
        if self.status_code:
            base = f"[{self.status_code}] {base}"
        return base
