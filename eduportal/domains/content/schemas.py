# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content request/response schemas.

One create, update and response schema per content kind, plus the
listing filters and the dashboard statistics. Author columns are never
accepted from clients; they come from the authenticated identity.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from eduportal.infrastructure.database.models import AnnouncementType, ExamStatus


class ContentFilters(BaseModel):
    """Conjunctive listing filters.

    published applies to news and announcements, and to exam results as
    status == published. type applies to announcements only.
    """

    published: bool | None = None
    author_id: UUID | None = None
    type: AnnouncementType | None = None
    limit: int | None = Field(default=None, ge=1, le=200)
    offset: int | None = Field(default=None, ge=0)


# =============================================================================
# News
# =============================================================================


class NewsCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    image_url: str | None = None
    published: bool = False


class NewsUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = None
    image_url: str | None = None
    published: bool | None = None


class NewsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    author_id: UUID
    title: str
    content: str
    image_url: str | None = None
    published: bool | None = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Announcements
# =============================================================================


class AnnouncementCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    type: AnnouncementType = AnnouncementType.GENERAL
    priority: int | None = Field(default=1, ge=0)
    published: bool = False
    expires_at: datetime | None = None


class AnnouncementUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = None
    type: AnnouncementType | None = None
    priority: int | None = Field(default=None, ge=0)
    published: bool | None = None
    expires_at: datetime | None = None


class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    author_id: UUID
    title: str
    content: str
    type: AnnouncementType
    priority: int | None = None
    published: bool | None = None
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Events
# =============================================================================


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    event_date: datetime
    location: str | None = None
    max_participants: int | None = Field(default=None, ge=1)
    registration_required: bool = False


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    event_date: datetime | None = None
    location: str | None = None
    max_participants: int | None = Field(default=None, ge=1)
    registration_required: bool | None = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organizer_id: UUID
    title: str
    description: str | None = None
    event_date: datetime
    location: str | None = None
    max_participants: int | None = None
    registration_required: bool | None = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Exam results
# =============================================================================


class ExamResultCreate(BaseModel):
    """A new exam result. grade and score are derived from marks when absent."""

    student_id: UUID
    exam_name: str = Field(min_length=1, max_length=255)
    subject: str = Field(min_length=1, max_length=128)
    exam_date: date
    marks_obtained: float = Field(ge=0)
    total_marks: float = Field(gt=0)
    grade: str | None = Field(default=None, max_length=8)
    score: float | None = None
    status: ExamStatus = ExamStatus.DRAFT


class ExamResultUpdate(BaseModel):
    exam_name: str | None = Field(default=None, min_length=1, max_length=255)
    subject: str | None = Field(default=None, min_length=1, max_length=128)
    exam_date: date | None = None
    marks_obtained: float | None = Field(default=None, ge=0)
    total_marks: float | None = Field(default=None, gt=0)
    grade: str | None = Field(default=None, max_length=8)
    score: float | None = None
    status: ExamStatus | None = None


class ExamResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    teacher_id: UUID
    exam_name: str
    subject: str
    exam_date: date
    marks_obtained: float
    total_marks: float
    grade: str | None = None
    score: float | None = None
    status: ExamStatus
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Statistics
# =============================================================================


class ContentStats(BaseModel):
    """Dashboard counters. All zero when the counts could not be read."""

    total_news: int = 0
    total_announcements: int = 0
    total_events: int = 0
    total_exam_results: int = 0
    published_news: int = 0
    published_announcements: int = 0
    pending_exam_results: int = 0
