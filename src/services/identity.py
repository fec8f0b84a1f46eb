# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Users service client for bearer token verification."""

import logging
from dataclasses import dataclass

from src.services.base import ServiceClient, bearer_headers
from src.services.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of a token check.

    Attributes:
        valid: Whether the users service accepted the token.
        user_id: Identifier of the token owner when valid.
    """

    valid: bool
    user_id: str | None = None


class IdentityClient(ServiceClient):
    """Delegates bearer token verification to the users service.

    A rejected token and an unreachable service are reported the same way:
    TokenVerification(valid=False).
    """

    service_name = "users"

    async def verify_token(self, token: str) -> TokenVerification:
        """Verify a bearer token.

        Args:
            token: Raw bearer token (without the "Bearer " prefix).

        Returns:
            TokenVerification with the owning user id when valid.
        """
        try:
            response = await self._request(
                "GET",
                "/api/auth/verify-token",
                headers=bearer_headers(token),
            )
        except UpstreamServiceError:
            return TokenVerification(valid=False)

        if not response.is_success:
            logger.info("Token rejected by users service (status=%d)", response.status_code)
            return TokenVerification(valid=False)

        try:
            body = response.json()
        except ValueError:
            return TokenVerification(valid=False)

        user = body.get("user") if isinstance(body, dict) else None
        if not isinstance(user, dict):
            logger.info("Users service verified token without a user object")
            return TokenVerification(valid=False)

        user_id = user.get("_id") or user.get("id")
        if not user_id:
            return TokenVerification(valid=False)
        return TokenVerification(valid=True, user_id=str(user_id))
