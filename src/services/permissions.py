# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Permissions service client."""

from src.services.base import ServiceClient, bearer_headers


class PermissionsClient(ServiceClient):
    """Reads which title memories a user has been granted access to."""

    service_name = "permissions"

    async def get_permitted_memory_ids(self, token: str) -> list[str]:
        """Get the title memory ids the token's owner may see.

        The service answers {"data": [{"memoryId": "..."}, ...]}.

        Args:
            token: Caller's bearer token.

        Returns:
            Title memory ids, in service order, without duplicates.

        Raises:
            UpstreamServiceError: If the call fails.
        """
        operation = "getPermissionsByUser"
        response = await self._request(
            "GET",
            "/permissions/getByUserId",
            headers=bearer_headers(token),
        )
        self._raise_for_status(response, operation)
        body = self._json(response, operation)

        permissions = body.get("data", []) if isinstance(body, dict) else []
        memory_ids: list[str] = []
        for permission in permissions:
            memory_id = permission.get("memoryId") if isinstance(permission, dict) else None
            if memory_id and str(memory_id) not in memory_ids:
                memory_ids.append(str(memory_id))
        return memory_ids
