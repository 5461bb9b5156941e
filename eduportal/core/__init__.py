# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for EduPortal.

This package contains cross-cutting application concerns:
- config: Application configuration and settings
- exceptions: Error taxonomy shared by services and transports
- container: Start-up wiring of the service objects
"""
