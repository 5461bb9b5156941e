# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification domain: records, delivery and templated senders."""

from eduportal.domains.notification.schemas import (
    BulkNotificationCreate,
    BulkResult,
    NotificationCreate,
    NotificationResponse,
    UnreadCountResponse,
)
from eduportal.domains.notification.service import NotificationService

__all__ = [
    "BulkNotificationCreate",
    "BulkResult",
    "NotificationCreate",
    "NotificationResponse",
    "NotificationService",
    "UnreadCountResponse",
]
