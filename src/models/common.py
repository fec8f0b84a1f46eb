# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared API models."""

from pydantic import BaseModel, ConfigDict, Field


class PaginationResponse(BaseModel):
    """Pagination block returned with every paginated list."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(description="Number of records matching the query")
    page: int = Field(description="Current page (1-based)")
    limit: int = Field(description="Page size")
    total_pages: int = Field(alias="totalPages", description="ceil(total / limit)")


class MessageResponse(BaseModel):
    """Plain message response."""

    message: str = Field(description="Human-readable message")


class ValidationErrorResponse(BaseModel):
    """Client error listing every violation found."""

    detail: str = Field(description="Summary of the failure")
    errors: list[str] = Field(default_factory=list, description="Individual violations")
