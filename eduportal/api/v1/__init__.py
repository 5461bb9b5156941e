# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    content: News, announcements, events and exam results.
    notifications: Inbox and admin sends.
    realtime: WebSocket stream of change events.
"""

from fastapi import APIRouter

from eduportal.api.v1 import content, notifications, realtime

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(content.router, prefix="/content", tags=["Content"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(realtime.router, prefix="/realtime", tags=["Realtime"])

__all__ = ["router"]
