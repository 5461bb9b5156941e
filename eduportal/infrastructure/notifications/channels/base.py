# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base classes for notification transports.

A channel formats a message for one medium (SMS, email), calls one
external endpoint and normalizes the answer into a ChannelResult.
Channels never raise to callers: every outcome, including provider
errors and disabled features, is a result.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from eduportal.utils.datetime import format_iso, utc_now

if TYPE_CHECKING:
    import httpx

    from eduportal.core.config.settings import Settings


class ChannelType(str, Enum):
    """Notification delivery channels.

    PUSH is a recognised record type without a transport.
    """

    IN_APP = "in_app"
    PUSH = "push"
    EMAIL = "email"
    SMS = "sms"


class DeliveryStatus(str, Enum):
    """Delivery status of a notification record or channel result."""

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass
class ChannelResult:
    """Result of a channel send operation.

    Attributes:
        channel: Which channel was used.
        status: Delivery status.
        message_id: External message ID (simulated ids start with "sim_").
        error_message: Error message if failed.
        sent_at: When the attempt finished.
        simulated: True when no provider was contacted.
        metadata: Additional result metadata.
    """

    channel: ChannelType
    status: DeliveryStatus
    message_id: str | None = None
    error_message: str | None = None
    sent_at: datetime | None = None
    simulated: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        """Whether the message was handed off (really or simulated)."""
        return self.status in (DeliveryStatus.SENT, DeliveryStatus.DELIVERED)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage in notification data."""
        return {
            "channel": self.channel.value,
            "status": self.status.value,
            "message_id": self.message_id,
            "error_message": self.error_message,
            "sent_at": format_iso(self.sent_at),
            "simulated": self.simulated,
            "metadata": self.metadata,
        }


class BaseChannel(ABC):
    """Abstract base class for notification transports.

    Attributes:
        settings: Application settings.
        logger: Per-channel logger.
    """

    def __init__(self, settings: "Settings") -> None:
        self.settings = settings
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        ...

    @property
    def simulation_enabled(self) -> bool:
        """Whether unconfigured or unreachable providers fall back to simulation."""
        return self.settings.simulation_enabled

    def create_success_result(
        self,
        message_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        simulated: bool = False,
    ) -> ChannelResult:
        """Create a successful channel result."""
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.SENT,
            message_id=message_id,
            sent_at=utc_now(),
            simulated=simulated,
            metadata=metadata or {},
        )

    def create_failure_result(
        self,
        error_message: str,
        metadata: dict[str, Any] | None = None,
    ) -> ChannelResult:
        """Create a failed channel result."""
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.FAILED,
            error_message=error_message,
            sent_at=utc_now(),
            metadata=metadata or {},
        )



def json_body(response: "httpx.Response") -> dict[str, Any]:
    """Decode a provider response body as a JSON object.

    Returns an empty dict when the body is not JSON or not an object.
    """
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
