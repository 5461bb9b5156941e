# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI application factory.

This module provides the main application factory for the EduPortal API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eduportal import __version__
from eduportal.api.middleware.auth import AuthMiddleware
from eduportal.api.routes import health
from eduportal.api.v1 import router as v1_router
from eduportal.core.config import get_settings
from eduportal.core.container import ServiceContainer
from eduportal.core.exceptions import AuthRequiredError
from eduportal.infrastructure.database import DatabaseError, close_database, init_database
from eduportal.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup configures logging, reports configuration problems, opens
    the database pool and builds the service container unless one was
    supplied to create_app. Shutdown reverses it.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting EduPortal API",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    # =========================================================================
    # Startup
    # =========================================================================

    for problem in settings.validate_config():
        logger.warning("Configuration: %s", problem)

    try:
        await init_database(settings)
        logger.info("Database connection initialized")
    except DatabaseError as e:
        logger.warning("Failed to initialize database connection: %s", str(e))

    if getattr(app.state, "container", None) is None:
        app.state.container = ServiceContainer.build(settings)

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    app.state.container.shutdown()

    try:
        await close_database()
        logger.info("Database connection closed")
    except DatabaseError as e:
        logger.warning("Error closing database connection: %s", str(e))

    logger.info("Shutting down EduPortal API")


async def _auth_required_handler(request: Request, exc: AuthRequiredError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        container: Pre-built services. When omitted the lifespan builds
            them from settings.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="EduPortal API",
        description="School content, notification and live-update services",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Redirects from /path to /path/ drop the Authorization header
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.container = container

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(AuthRequiredError, _auth_required_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(AuthMiddleware, jwt_manager=container.jwt if container else None)

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
