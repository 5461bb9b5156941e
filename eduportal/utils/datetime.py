# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for EduPortal.

All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ) and every
Python datetime handled by the service is timezone-aware.

Usage:
------
    from eduportal.utils.datetime import utc_now

    # For SQLAlchemy model defaults
    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware in UTC.

    Naive datetimes are assumed to already be UTC.

    Args:
        dt: Datetime to normalize, may be None.

    Returns:
        UTC datetime or None.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime | None) -> str | None:
    """Format datetime as ISO 8601 string in UTC.

    Args:
        dt: Datetime to format.

    Returns:
        ISO 8601 formatted string or None.
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return None
    return dt_utc.isoformat()


def epoch_millis(dt: datetime | None = None) -> int:
    """Milliseconds since the Unix epoch.

    Args:
        dt: Datetime to convert, defaults to now.

    Returns:
        Integer milliseconds.
    """
    dt_utc = ensure_utc(dt) or utc_now()
    return int(dt_utc.timestamp() * 1000)
