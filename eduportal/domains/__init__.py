# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services for EduPortal.

- auth: Token validation and current-user identity
- content: News, announcements, events and exam results
- notification: Notification records and delivery
- realtime: Named live-update subscriptions
"""
