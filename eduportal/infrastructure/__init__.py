# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for EduPortal.

- database: SQLAlchemy async engine, sessions and table mappings
- notifications: SMS and email transport adapters and templates
- realtime: In-process change feed for live updates
"""
