# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and liveness endpoints for the API.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from eduportal import __version__
from eduportal.infrastructure.database import check_database_connection

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    message: str | None = Field(None, description="Additional status message")


class ComponentsHealth(BaseModel):
    """All components health status."""
    database: ComponentHealth | None = None
    sms: ComponentHealth | None = None
    email: ComponentHealth | None = None
    realtime: ComponentHealth | None = None


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    checked_at: datetime = Field(description="When health was checked")
    components: ComponentsHealth = Field(default_factory=ComponentsHealth)


@router.get("/health/live")
async def liveness() -> dict[str, str]:
    """Process is up."""
    return {"status": "alive"}


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Check the database and report transport configuration.

    The database decides the overall status. An unconfigured transport
    only degrades it, since deliveries fall back to simulation.
    """
    components = ComponentsHealth()

    if await check_database_connection():
        components.database = ComponentHealth(status="healthy")
    else:
        components.database = ComponentHealth(status="unhealthy", message="Database unreachable")

    container = getattr(request.app.state, "container", None)
    environment = "unknown"
    if container is not None:
        settings = container.settings
        environment = settings.environment

        if settings.twilio.is_configured:
            components.sms = ComponentHealth(status="healthy")
        else:
            components.sms = ComponentHealth(status="degraded", message="Twilio not configured")

        check = container.email.check_configuration()
        components.email = ComponentHealth(
            status="healthy" if check.success else "degraded",
            message=check.message,
        )

        stats = container.feed.get_stats()
        components.realtime = ComponentHealth(
            status="healthy",
            message=f"{stats['subscriptions']} feed subscriptions",
        )

    statuses = [
        c.status
        for c in (components.database, components.sms, components.email)
        if c is not None
    ]
    if any(s == "unhealthy" for s in statuses):
        overall = "unhealthy"
    elif all(s == "healthy" for s in statuses):
        overall = "healthy"
    else:
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        environment=environment,
        uptime_seconds=int(time.time() - _server_start_time),
        checked_at=datetime.now(timezone.utc),
        components=components,
    )
