# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the title memory
service.

Run with:
    uvicorn src.api.app:create_app --factory --port 3003
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.dependencies import close_service_clients, init_service_clients
from src.api.middleware import RequestContextMiddleware
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import get_settings
from src.domains.title_memory.exceptions import (
    AuthenticationRequiredError,
    TitleMemoryNotFoundError,
    TitleMemoryValidationError,
)
from src.infrastructure.database import close_database, create_schema, init_database
from src.services.exceptions import UpstreamServiceError
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes and cleans up:
    - Logging
    - Database connection pool and schema
    - External service clients

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info("Starting Title Memory Service (environment=%s)", settings.environment)

    # =========================================================================
    # Startup
    # =========================================================================

    await init_database(settings)
    try:
        await create_schema()
        logger.info("Database schema ready")
    except Exception as e:
        logger.warning("Failed to create database schema: %s", str(e))

    init_service_clients(settings)

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    try:
        await close_service_clients()
        logger.info("External service clients closed")
    except Exception as e:
        logger.warning("Error closing service clients: %s", str(e))

    await close_database()
    logger.info("Shutting down Title Memory Service")


# =========================================================================
# Exception handlers
# =========================================================================


async def not_found_handler(request: Request, exc: TitleMemoryNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def validation_error_handler(request: Request, exc: TitleMemoryValidationError) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, str(exc))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "errors": exc.errors},
    )


async def authentication_required_handler(
    request: Request,
    exc: AuthenticationRequiredError,
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def upstream_error_handler(request: Request, exc: UpstreamServiceError) -> JSONResponse:
    logger.error(
        "Upstream failure on %s %s: service=%s status=%s: %s",
        request.method,
        request.url.path,
        exc.service,
        exc.status_code,
        exc.message,
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": f"The {exc.service} service is unavailable"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api.title,
        description="Accreditation records of academic programs and their competencies",
        version=health.API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    app.add_exception_handler(TitleMemoryNotFoundError, not_found_handler)
    app.add_exception_handler(TitleMemoryValidationError, validation_error_handler)
    app.add_exception_handler(AuthenticationRequiredError, authentication_required_handler)
    app.add_exception_handler(UpstreamServiceError, upstream_error_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    app.add_middleware(RequestContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
