# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Hold the external service clients for the lifetime of the app
- Build a TitleMemoryService per request
- Authenticate callers through the identity service

Example:
    @router.post("")
    async def create_title_memory(
        data: TitleMemoryCreate,
        caller: Caller = Depends(require_bearer_user),
        service: TitleMemoryService = Depends(get_title_memory_service),
    ):
        ...
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status

from src.core.config import Settings, get_settings
from src.domains.title_memory.service import Caller, TitleMemoryService
from src.infrastructure.database import TitleMemoryStore, get_sessionmaker
from src.services import (
    CompetencyCatalogClient,
    IdentityClient,
    PermissionsClient,
    SubjectStatusClient,
)

logger = logging.getLogger(__name__)


@dataclass
class ServiceClients:
    """External service clients shared by every request."""

    identity: IdentityClient
    permissions: PermissionsClient
    catalog: CompetencyCatalogClient
    subjects: SubjectStatusClient

    async def close(self) -> None:
        for client in (self.identity, self.permissions, self.catalog, self.subjects):
            await client.close()


_clients: ServiceClients | None = None


def init_service_clients(settings: Settings) -> ServiceClients:
    """Create the external service clients from settings."""
    global _clients
    _clients = ServiceClients(
        identity=IdentityClient(
            settings.users_service.base_url,
            timeout=settings.users_service.timeout,
        ),
        permissions=PermissionsClient(
            settings.permissions_service.base_url,
            timeout=settings.permissions_service.timeout,
        ),
        catalog=CompetencyCatalogClient(
            settings.skills_service.base_url,
            timeout=settings.skills_service.timeout,
        ),
        subjects=SubjectStatusClient(
            settings.subjects_service.base_url,
            timeout=settings.subjects_service.timeout,
        ),
    )
    logger.info("External service clients initialized")
    return _clients


async def close_service_clients() -> None:
    """Close the external service clients."""
    global _clients
    if _clients is not None:
        await _clients.close()
        _clients = None


def get_service_clients() -> ServiceClients:
    """Get the external service clients.

    Raises:
        HTTPException: If the clients have not been initialized.
    """
    if _clients is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service clients not initialized",
        )
    return _clients


def get_title_memory_service(
    clients: ServiceClients = Depends(get_service_clients),
) -> TitleMemoryService:
    """Build a title memory service for one request."""
    settings = get_settings()
    return TitleMemoryService(
        store=TitleMemoryStore(get_sessionmaker()),
        catalog=clients.catalog,
        subjects=clients.subjects,
        permissions=clients.permissions,
        cascade_mode=settings.subjects_service.cascade_mode,
        default_limit=settings.pagination.default_limit,
        max_limit=settings.pagination.max_limit,
    )


# =========================================================================
# Authentication Dependencies
# =========================================================================


def get_bearer_token(request: Request) -> str | None:
    """Extract the token from an "Authorization: Bearer <token>" header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_optional_caller(
    token: str | None = Depends(get_bearer_token),
    clients: ServiceClients = Depends(get_service_clients),
) -> Caller | None:
    """Get the authenticated caller, or None when there is no valid token."""
    if not token:
        return None

    verification = await clients.identity.verify_token(token)
    if not verification.valid or not verification.user_id:
        logger.debug("Bearer token rejected by identity service")
        return None

    return Caller(user_id=verification.user_id, token=token)


async def require_bearer_user(
    caller: Caller | None = Depends(get_optional_caller),
) -> Caller:
    """Require an authenticated caller.

    Raises:
        HTTPException: 401 if the token is missing or not valid.
    """
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller
