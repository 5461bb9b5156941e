"""EduPortal Backend.

Service layer of the EMRS Dornala school portal: news, announcements,
events and exam results, SMS/email notifications, and live updates.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
