# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School content tables: news, announcements, events and exam results."""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, Float, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from eduportal.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class AnnouncementType(str, enum.Enum):
    """Announcement categories."""

    GENERAL = "general"
    URGENT = "urgent"
    EVENT = "event"
    EXAM = "exam"


class ExamStatus(str, enum.Enum):
    """Exam result lifecycle."""

    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"


def _enum_values(members: type[enum.Enum]) -> list[str]:
    return [m.value for m in members]


class News(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """School news article."""

    __tablename__ = "news"

    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(String(1024))
    published: Mapped[bool | None] = mapped_column(Boolean, default=False)


class Announcement(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Announcement broadcast to students and teachers when published."""

    __tablename__ = "announcements"

    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text)
    type: Mapped[AnnouncementType] = mapped_column(
        Enum(AnnouncementType, name="announcement_type", values_callable=_enum_values),
        default=AnnouncementType.GENERAL,
    )
    priority: Mapped[int | None] = mapped_column(Integer, default=1)
    published: Mapped[bool | None] = mapped_column(Boolean, default=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class Event(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Scheduled school event. Events are visible once created."""

    __tablename__ = "events"

    organizer_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    event_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    location: Mapped[str | None] = mapped_column(String(255))
    max_participants: Mapped[int | None] = mapped_column(Integer)
    registration_required: Mapped[bool | None] = mapped_column(Boolean, default=False)


class ExamResult(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's result for one exam, entered by a teacher."""

    __tablename__ = "exam_results"

    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    exam_name: Mapped[str] = mapped_column(String(255))
    subject: Mapped[str] = mapped_column(String(128))
    exam_date: Mapped[date] = mapped_column(Date)
    marks_obtained: Mapped[float] = mapped_column(Float)
    total_marks: Mapped[float] = mapped_column(Float)
    grade: Mapped[str | None] = mapped_column(String(8))
    score: Mapped[float | None] = mapped_column(Float)
    status: Mapped[ExamStatus] = mapped_column(
        Enum(ExamStatus, name="exam_status", values_callable=_enum_values),
        default=ExamStatus.DRAFT,
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
