# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification request/response schemas."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from eduportal.infrastructure.notifications.channels.base import ChannelType

Priority = Literal["low", "medium", "high"]


class NotificationCreate(BaseModel):
    """One notification for one user."""

    user_id: UUID
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: ChannelType = ChannelType.SMS
    data: dict[str, Any] | None = None
    priority: Priority = "medium"


class BulkNotificationCreate(BaseModel):
    """The same notification for many users."""

    user_ids: list[UUID]
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: ChannelType = ChannelType.SMS
    data: dict[str, Any] | None = None
    priority: Priority = "medium"

    def for_user(self, user_id: UUID) -> NotificationCreate:
        return NotificationCreate(
            user_id=user_id,
            title=self.title,
            message=self.message,
            type=self.type,
            data=self.data,
            priority=self.priority,
        )


class BulkResult(BaseModel):
    """Aggregate outcome of a fan-out. success + failed == total."""

    success: int = 0
    failed: int = 0
    total: int = 0


class NotificationResponse(BaseModel):
    """Stored notification as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    message: str
    type: str
    status: str | None = None
    read: bool | None = None
    data: dict[str, Any] | None = None
    created_at: datetime


class UnreadCountResponse(BaseModel):
    """Unread notification count for the current user."""

    count: int
