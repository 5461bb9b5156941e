# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get the service container built at start-up
- Get service instances
- Get authenticated users and enforce roles

Example:
    @router.get("/content/{kind}")
    async def list_content(
        service: ContentServiceDep,
        current_user: AuthenticatedUser,
    ):
        ...
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.requests import HTTPConnection

from eduportal.api.middleware.auth import get_current_user
from eduportal.core.container import ServiceContainer
from eduportal.domains.auth.identity import CurrentUser
from eduportal.domains.content.service import ContentService
from eduportal.domains.notification.service import NotificationService
from eduportal.infrastructure.database.models import UserRole

logger = logging.getLogger(__name__)


def get_container(connection: HTTPConnection) -> ServiceContainer:
    """Get the service container from application state.

    Raises:
        HTTPException: If the application has not finished starting.
    """
    container = getattr(connection.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Services not initialized",
        )
    return container


def get_content_service(
    container: ServiceContainer = Depends(get_container),
) -> ContentService:
    return container.content


def get_notification_service(
    container: ServiceContainer = Depends(get_container),
) -> NotificationService:
    return container.notifications


def require_auth(request: Request) -> CurrentUser:
    """Get the current user, requiring authentication.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(request: Request) -> CurrentUser:
    """Require an admin user.

    Raises:
        HTTPException: If not authenticated or not admin.
    """
    user = require_auth(request)
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def require_teacher_or_admin(request: Request) -> CurrentUser:
    """Require a teacher or admin user.

    Raises:
        HTTPException: If not authenticated or a student.
    """
    user = require_auth(request)
    if not user.has_any_role(UserRole.TEACHER.value, UserRole.ADMIN.value):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher or admin access required",
        )
    return user


# Type aliases for cleaner endpoint signatures
ContentServiceDep = Annotated[ContentService, Depends(get_content_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
AuthenticatedUser = Annotated[CurrentUser, Depends(require_auth)]
AdminUser = Annotated[CurrentUser, Depends(require_admin)]
TeacherOrAdmin = Annotated[CurrentUser, Depends(require_teacher_or_admin)]
