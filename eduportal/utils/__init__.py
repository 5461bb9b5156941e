# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for EduPortal.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from eduportal.utils.datetime import ensure_utc, epoch_millis, format_iso, utc_now
from eduportal.utils.logging import bind_context, clear_context, get_logger, setup_logging

__all__ = [
    "bind_context",
    "clear_context",
    "ensure_utc",
    "epoch_millis",
    "format_iso",
    "get_logger",
    "setup_logging",
    "utc_now",
]
