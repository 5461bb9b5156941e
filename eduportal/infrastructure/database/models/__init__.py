# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy mappings of the school platform tables."""

from eduportal.infrastructure.database.models.base import Base
from eduportal.infrastructure.database.models.content import (
    Announcement,
    AnnouncementType,
    Event,
    ExamResult,
    ExamStatus,
    News,
)
from eduportal.infrastructure.database.models.notification import Notification
from eduportal.infrastructure.database.models.profile import Profile, UserRole

__all__ = [
    "Announcement",
    "AnnouncementType",
    "Base",
    "Event",
    "ExamResult",
    "ExamStatus",
    "News",
    "Notification",
    "Profile",
    "UserRole",
]
