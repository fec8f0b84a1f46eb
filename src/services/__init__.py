# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Clients for the external services the title memory service depends on.

- identity: users service, bearer token verification
- permissions: title memories a user may see
- competency_catalog: skills service (skills and learning outcomes)
- subjects: subject status changes cascaded from title memories
"""

from src.services.competency_catalog import CompetencyCatalogClient, durable_id
from src.services.exceptions import UpstreamServiceError
from src.services.identity import IdentityClient, TokenVerification
from src.services.permissions import PermissionsClient
from src.services.subjects import SubjectStatusClient

__all__ = [
    "CompetencyCatalogClient",
    "IdentityClient",
    "PermissionsClient",
    "SubjectStatusClient",
    "TokenVerification",
    "UpstreamServiceError",
    "durable_id",
]
