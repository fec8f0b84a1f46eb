# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    title_memories: Title memory endpoints (CRUD, search, import, checks).
"""

from fastapi import APIRouter

from src.api.v1 import title_memories

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(title_memories.router, prefix="/title-memories", tags=["Title Memories"])

__all__ = ["router"]
