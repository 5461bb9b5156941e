# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content domain: news, announcements, events and exam results."""

from eduportal.domains.content.grading import calculate_grade, percentage
from eduportal.domains.content.kinds import CONTENT_KINDS, ContentKind, ContentSpec, get_spec
from eduportal.domains.content.schemas import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
    ContentFilters,
    ContentStats,
    EventCreate,
    EventResponse,
    EventUpdate,
    ExamResultCreate,
    ExamResultResponse,
    ExamResultUpdate,
    NewsCreate,
    NewsResponse,
    NewsUpdate,
)
from eduportal.domains.content.service import ContentService

__all__ = [
    "AnnouncementCreate",
    "AnnouncementResponse",
    "AnnouncementUpdate",
    "CONTENT_KINDS",
    "ContentFilters",
    "ContentKind",
    "ContentService",
    "ContentSpec",
    "ContentStats",
    "EventCreate",
    "EventResponse",
    "EventUpdate",
    "ExamResultCreate",
    "ExamResultResponse",
    "ExamResultUpdate",
    "NewsCreate",
    "NewsResponse",
    "NewsUpdate",
    "calculate_grade",
    "get_spec",
    "percentage",
]
