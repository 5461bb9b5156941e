# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User profiles, the source of audiences and contact details."""

import enum
import uuid
from datetime import date

from sqlalchemy import Date, Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from eduportal.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class UserRole(str, enum.Enum):
    """Portal roles."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class Profile(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Profile row keyed by the auth user id.

    The service only reads profiles; they are maintained by the
    platform's auth flows.
    """

    __tablename__ = "profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(32))
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="user_role",
            values_callable=lambda members: [m.value for m in members],
        ),
        default=UserRole.STUDENT,
    )
    class_name: Mapped[str | None] = mapped_column(String(64))
    student_id: Mapped[str | None] = mapped_column(String(64))
    address: Mapped[str | None] = mapped_column(String(512))
    avatar_url: Mapped[str | None] = mapped_column(String(1024))
    date_of_birth: Mapped[date | None] = mapped_column(Date)
