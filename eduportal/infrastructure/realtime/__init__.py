# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Live-update change feed."""

from eduportal.infrastructure.realtime.feed import (
    ChangeEvent,
    ChangeFeed,
    ChangeHandler,
    ChangeType,
    FeedSubscription,
)

__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "ChangeHandler",
    "ChangeType",
    "FeedSubscription",
]
