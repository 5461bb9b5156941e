# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification transports.

- sms: Twilio REST API
- email: Resend REST API or SMTP
"""

from eduportal.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    DeliveryStatus,
)
from eduportal.infrastructure.notifications.channels.email import (
    EmailChannel,
    EmailMessage,
    EmailReport,
    RecipientResult,
)
from eduportal.infrastructure.notifications.channels.sms import (
    BulkSMSResult,
    SMSChannel,
    SMSMessage,
    format_phone_number,
    validate_phone_number,
)

__all__ = [
    "BaseChannel",
    "BulkSMSResult",
    "ChannelResult",
    "ChannelType",
    "DeliveryStatus",
    "EmailChannel",
    "EmailMessage",
    "EmailReport",
    "RecipientResult",
    "SMSChannel",
    "SMSMessage",
    "format_phone_number",
    "validate_phone_number",
]
