# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unversioned routes (health checks)."""

from eduportal.api.routes import health

__all__ = ["health"]
