# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Realtime domain: named live-update channels."""

from eduportal.domains.realtime.service import (
    ADMIN_TABLES,
    CONTENT_TABLES,
    Channel,
    ChannelBinding,
    RealtimeService,
    RealtimeSubscription,
)

__all__ = [
    "ADMIN_TABLES",
    "CONTENT_TABLES",
    "Channel",
    "ChannelBinding",
    "RealtimeService",
    "RealtimeSubscription",
]
