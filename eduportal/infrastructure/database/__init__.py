# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database access for EduPortal."""

from eduportal.infrastructure.database.connection import (
    DatabaseError,
    SessionFactory,
    check_database_connection,
    close_database,
    get_session,
    init_database,
)

__all__ = [
    "DatabaseError",
    "SessionFactory",
    "check_database_connection",
    "close_database",
    "get_session",
    "init_database",
]
