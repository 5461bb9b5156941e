# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification delivery records."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from eduportal.infrastructure.database.models.base import Base, UUIDPrimaryKeyMixin
from eduportal.utils.datetime import utc_now


class Notification(UUIDPrimaryKeyMixin, Base):
    """One delivery attempt to one user.

    Created as "pending" before the transport call and moved to "sent"
    or "failed" afterwards. Rows are never deleted by the service.
    """

    __tablename__ = "notifications"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(16))
    status: Mapped[str | None] = mapped_column(String(16), default="pending")
    read: Mapped[bool | None] = mapped_column(Boolean, default=False)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
