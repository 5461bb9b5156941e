# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SMS channel using the Twilio REST API.

Messages are posted to the account's Messages resource with basic
auth. When Twilio is not configured or unreachable the channel
produces a simulated delivery instead, if simulation fallback is
enabled (NOTIFICATIONS_SIMULATION_FALLBACK, on by default outside
production).

Configuration (via environment variables):
- TWILIO_ACCOUNT_SID: Account SID
- TWILIO_AUTH_TOKEN: Auth token
- TWILIO_PHONE_NUMBER: Sender number
- FEATURE_SMS_NOTIFICATIONS: Master switch for SMS
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from eduportal.core.exceptions import TransportFailure
from eduportal.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    json_body,
)
from eduportal.utils.datetime import epoch_millis

if TYPE_CHECKING:
    from eduportal.core.config.settings import Settings

# 123-456-7890, (123) 456-7890, +1 123.456.7890 and similar
_SEPARATED_PHONE = re.compile(
    r"(\+?1?[-.\s]?)?\(?([0-9]{3})\)?[-.\s]?([0-9]{3})[-.\s]?([0-9]{4})"
)
_INTERNATIONAL_PHONE = re.compile(r"\+[0-9]{10,15}")
_NON_DIGITS = re.compile(r"[^0-9]")


def validate_phone_number(phone: str | None) -> bool:
    """Check that a phone number is plausible enough to send to.

    Args:
        phone: Raw phone number as entered by a user.

    Returns:
        True for at least 10 digits in a US-style separated layout or a
        "+" followed by 10 to 15 digits.
    """
    if not phone or len(phone) < 3:
        return False

    digits = _NON_DIGITS.sub("", phone)
    if len(digits) < 10:
        return False

    return bool(
        _SEPARATED_PHONE.fullmatch(phone) or _INTERNATIONAL_PHONE.fullmatch(phone)
    )


def format_phone_number(phone: str) -> str:
    """Normalize a phone number to E.164.

    Numbers already starting with "+" are returned unchanged. Ten
    digits are treated as a US number.

    Args:
        phone: Raw phone number.

    Returns:
        The number prefixed with "+" and, where needed, a country code.
    """
    if phone.startswith("+"):
        return phone

    digits = _NON_DIGITS.sub("", phone)

    if len(digits) == 10:
        return f"+1{digits}"

    return f"+{digits}"


@dataclass
class SMSMessage:
    """A single outbound SMS.

    Attributes:
        to: Destination phone number (formatted before sending).
        body: Message text.
        user_id: Recipient user, for log correlation.
    """

    to: str
    body: str
    user_id: str | None = None


@dataclass
class BulkSMSResult:
    """Aggregate outcome of a serial bulk run."""

    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success + self.failed


class SMSChannel(BaseChannel):
    """Twilio SMS transport.

    Args:
        settings: Application settings.
        transport: Optional httpx transport, used by tests to stub Twilio.
    """

    def __init__(
        self,
        settings: "Settings",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(settings)
        self._transport = transport

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.SMS

    @property
    def is_configured(self) -> bool:
        return self.settings.twilio.is_configured

    async def send(self, message: SMSMessage) -> ChannelResult:
        """Send one SMS.

        Args:
            message: The message to send.

        Returns:
            ChannelResult carrying the Twilio message SID, a "sim_" id for
            simulated deliveries, or the failure reason.
        """
        if not self.settings.is_feature_enabled("sms_notifications"):
            return self.create_failure_result("SMS notifications are disabled")

        to = format_phone_number(message.to)

        if not self.is_configured:
            if self.simulation_enabled:
                return await self.simulate(message, to)
            return self.create_failure_result("Twilio credentials not configured")

        try:
            return await self._post(to, message.body)
        except httpx.HTTPError as e:
            self.logger.error("Twilio request to %s failed: %s", to, str(e))
            if self.simulation_enabled:
                return await self.simulate(message, to)
            return self.create_failure_result(f"Twilio request failed: {str(e)}")
        except TransportFailure as e:
            self.logger.warning("Twilio rejected SMS to %s: %s", to, str(e))
            return self.create_failure_result(
                e.message,
                metadata={"status_code": e.status_code, "to": to},
            )

    async def _post(self, to: str, body: str) -> ChannelResult:
        twilio = self.settings.twilio

        async with httpx.AsyncClient(
            timeout=twilio.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(
                twilio.messages_url,
                data={"To": to, "From": twilio.phone_number, "Body": body},
                auth=(twilio.account_sid, twilio.auth_token.get_secret_value()),
            )

        if not response.is_success:
            raise TransportFailure(
                _error_message(response),
                provider="twilio",
                status_code=response.status_code,
            )

        sid = json_body(response).get("sid")
        if not sid:
            raise TransportFailure(
                "Twilio response did not include a message SID",
                provider="twilio",
                status_code=response.status_code,
            )

        self.logger.info("SMS sent to %s: %s", to, sid)
        return self.create_success_result(message_id=sid, metadata={"to": to})

    async def simulate(self, message: SMSMessage, to: str | None = None) -> ChannelResult:
        """Produce a simulated delivery without contacting Twilio.

        Args:
            message: The message that would have been sent.
            to: Recipient in E.164 form; formatted from message.to when omitted.
        """
        to = to or format_phone_number(message.to)
        await asyncio.sleep(self.settings.notifications.simulated_delay_seconds)
        message_id = f"sim_{epoch_millis()}"
        self.logger.info(
            "SMS simulated to %s (user %s): %s",
            to,
            message.user_id,
            message_id,
        )
        return self.create_success_result(
            message_id=message_id,
            metadata={"to": to},
            simulated=True,
        )

    async def send_bulk(self, messages: list[SMSMessage]) -> BulkSMSResult:
        """Send messages one after another with a fixed pause between them.

        Args:
            messages: Messages to send in order.

        Returns:
            Success and failure counts plus one error line per failure.
        """
        result = BulkSMSResult()
        delay = self.settings.notifications.bulk_sms_delay_seconds

        for index, message in enumerate(messages):
            if index:
                await asyncio.sleep(delay)

            outcome = await self.send(message)
            if outcome.succeeded:
                result.success += 1
            else:
                result.failed += 1
                result.errors.append(
                    f"Failed to send to {message.to}: {outcome.error_message}"
                )

        return result


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"HTTP {response.status_code}"
