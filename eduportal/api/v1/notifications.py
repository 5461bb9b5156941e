# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification API endpoints.

- GET / - The current user's notifications, newest first
- GET /unread-count - Unread notification count
- POST /read-all - Mark all as read
- POST /{notification_id}/read - Mark one as read
- POST /send - Send one notification (admin)
- POST /bulk - Send to many users (admin)
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from eduportal.api.dependencies import AdminUser, AuthenticatedUser, NotificationServiceDep
from eduportal.domains.notification.schemas import (
    BulkNotificationCreate,
    BulkResult,
    NotificationCreate,
    NotificationResponse,
    UnreadCountResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[NotificationResponse], summary="List notifications")
async def list_notifications(
    service: NotificationServiceDep,
    current_user: AuthenticatedUser,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[NotificationResponse]:
    rows = await service.list_for_user(current_user.id, limit=limit)
    return [NotificationResponse.model_validate(row) for row in rows]


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread count")
async def get_unread_count(
    service: NotificationServiceDep,
    current_user: AuthenticatedUser,
) -> UnreadCountResponse:
    return UnreadCountResponse(count=await service.unread_count(current_user.id))


@router.post("/read-all", summary="Mark all notifications read")
async def mark_all_read(
    service: NotificationServiceDep,
    current_user: AuthenticatedUser,
) -> dict[str, bool]:
    if not await service.mark_all_read(current_user.id):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to update notifications",
        )
    return {"success": True}


@router.post("/{notification_id}/read", summary="Mark notification read")
async def mark_read(
    notification_id: UUID,
    service: NotificationServiceDep,
    current_user: AuthenticatedUser,
) -> dict[str, bool]:
    if not await service.mark_read(notification_id, user_id=current_user.id):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to update notification",
        )
    return {"success": True}


@router.post(
    "/send",
    summary="Send notification",
    description="Record and deliver one notification. Requires admin access.",
)
async def send_notification(
    data: NotificationCreate,
    service: NotificationServiceDep,
    current_user: AdminUser,
) -> dict[str, bool]:
    logger.info(
        "Admin %s sending %s notification to %s",
        current_user.id,
        data.type.value,
        data.user_id,
    )
    return {"success": await service.send(data)}


@router.post(
    "/bulk",
    response_model=BulkResult,
    summary="Send bulk notification",
    description="Send the same notification to many users. Requires admin access.",
)
async def send_bulk_notification(
    data: BulkNotificationCreate,
    service: NotificationServiceDep,
    current_user: AdminUser,
) -> BulkResult:
    logger.info(
        "Admin %s sending bulk notification to %d users",
        current_user.id,
        len(data.user_ids),
    )
    return await service.send_bulk(data)
