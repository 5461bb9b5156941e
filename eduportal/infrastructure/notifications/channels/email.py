# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Email channel with Resend, SMTP and simulated providers.

Each recipient is sent separately so one bad address does not fail the
whole batch; the outcome is an EmailReport with one RecipientResult per
address.

Configuration (via environment variables):
- EMAIL_PROVIDER: resend, smtp or simulated
- EMAIL_RESEND_API_KEY: Resend API key
- EMAIL_SMTP_HOST / EMAIL_SMTP_PORT / EMAIL_SMTP_USERNAME / EMAIL_SMTP_PASSWORD
- FEATURE_EMAIL_NOTIFICATIONS: Master switch for email
"""

import html
from dataclasses import dataclass, field
from email.message import EmailMessage as MIMEEmail
from typing import TYPE_CHECKING, Literal

import aiosmtplib
import httpx

from eduportal.core.exceptions import TransportFailure
from eduportal.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelType,
    json_body,
)
from eduportal.utils.datetime import format_iso, utc_now

if TYPE_CHECKING:
    from eduportal.core.config.settings import Settings

EmailKind = Literal["announcement", "news", "event", "exam_result", "general"]


@dataclass
class EmailMessage:
    """An outbound email.

    Attributes:
        to: One address or a list of addresses.
        subject: Subject line.
        body: Plain text body.
        html: Optional HTML body; rendered from the body when absent.
        kind: What the email is about.
    """

    to: str | list[str]
    subject: str
    body: str
    html: str | None = None
    kind: EmailKind = "general"

    @property
    def recipients(self) -> list[str]:
        return [self.to] if isinstance(self.to, str) else list(self.to)


@dataclass
class RecipientResult:
    """Delivery outcome for one address."""

    email: str
    status: Literal["sent", "failed"]
    error: str | None = None
    timestamp: str = field(default_factory=lambda: format_iso(utc_now()) or "")


@dataclass
class EmailReport:
    """Outcome of one EmailChannel.send call.

    Attributes:
        success: True when no recipient failed.
        results: Per-recipient outcomes in input order.
        message: Human readable summary.
        simulated: True when no provider was contacted.
    """

    success: bool
    results: list[RecipientResult]
    message: str
    simulated: bool = False

    @property
    def sent_count(self) -> int:
        return sum(1 for r in self.results if r.status == "sent")

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.status == "failed")


@dataclass
class ConfigurationCheck:
    """Whether the configured provider can be used."""

    success: bool
    message: str
    provider: str


class EmailChannel(BaseChannel):
    """Email transport.

    Args:
        settings: Application settings.
        transport: Optional httpx transport, used by tests to stub Resend.
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
        return ChannelType.EMAIL

    @property
    def provider(self) -> str:
        return self.settings.email.provider

    async def send(self, message: EmailMessage) -> EmailReport:
        """Send an email to every recipient.

        Args:
            message: The email to send.

        Returns:
            EmailReport; never raises.
        """
        recipients = message.recipients

        if not self.settings.is_feature_enabled("email_notifications"):
            return self._all_failed(recipients, "Email notifications are disabled")

        check = self.check_configuration()
        if self.provider == "simulated" or not check.success:
            if self.provider == "simulated" or self.simulation_enabled:
                return self.simulate(message)
            return self._all_failed(recipients, check.message)

        results: list[RecipientResult] = []
        for address in recipients:
            try:
                if self.provider == "resend":
                    await self._send_via_resend(address, message)
                else:
                    await self._send_via_smtp(address, message)
                results.append(RecipientResult(email=address, status="sent"))
            except (httpx.HTTPError, aiosmtplib.SMTPException, TransportFailure) as e:
                self.logger.warning(
                    "Failed to send email to %s via %s: %s",
                    address,
                    self.provider,
                    str(e),
                )
                results.append(
                    RecipientResult(email=address, status="failed", error=str(e))
                )

        report = self._report(results)
        self.logger.info(report.message)
        return report

    async def _send_via_resend(self, address: str, message: EmailMessage) -> None:
        email = self.settings.email

        async with httpx.AsyncClient(
            timeout=email.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(
                email.resend_api_url,
                headers={
                    "Authorization": f"Bearer {email.resend_api_key.get_secret_value()}",
                },
                json={
                    "from": email.from_address,
                    "to": address,
                    "subject": message.subject,
                    "html": message.html or self.format_html(message.body, message.subject),
                },
            )

        if not response.is_success:
            raise TransportFailure(
                json_body(response).get("message") or "Resend API error",
                provider="resend",
                status_code=response.status_code,
            )

    async def _send_via_smtp(self, address: str, message: EmailMessage) -> None:
        email = self.settings.email

        mime = MIMEEmail()
        mime["From"] = email.from_address
        mime["To"] = address
        mime["Subject"] = message.subject
        mime.set_content(message.body)
        mime.add_alternative(
            message.html or self.format_html(message.body, message.subject),
            subtype="html",
        )

        await aiosmtplib.send(
            mime,
            hostname=email.smtp_host,
            port=email.smtp_port,
            username=email.smtp_username or None,
            password=email.smtp_password.get_secret_value() or None,
            use_tls=email.smtp_use_tls,
            timeout=email.timeout,
        )

    def simulate(self, message: EmailMessage) -> EmailReport:
        """Mark every recipient as sent without contacting a provider."""
        recipients = message.recipients
        self.logger.info(
            "Email simulated to %d recipients: %s",
            len(recipients),
            message.subject,
        )
        return EmailReport(
            success=True,
            results=[RecipientResult(email=r, status="sent") for r in recipients],
            message=f"Simulation: {len(recipients)} emails processed",
            simulated=True,
        )

    def check_configuration(self) -> ConfigurationCheck:
        """Report whether the configured provider has what it needs."""
        email = self.settings.email

        if self.provider == "resend":
            if not email.resend_api_key.get_secret_value():
                return ConfigurationCheck(False, "Resend API key not configured", "resend")
            return ConfigurationCheck(True, "Resend API configured", "resend")

        if self.provider == "smtp":
            if not email.smtp_host:
                return ConfigurationCheck(False, "SMTP configuration incomplete", "smtp")
            return ConfigurationCheck(True, "SMTP configured", "smtp")

        return ConfigurationCheck(True, "Simulated email provider", self.provider)

    def format_html(self, body: str, subject: str) -> str:
        """Render the branded HTML email around a plain text body."""
        school = html.escape(self.settings.school_name)
        title = html.escape(subject)
        content = html.escape(body).replace("\n", "<br>")

        return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f4f4f4;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff;">
    <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 30px 20px; text-align: center;">
      <h1 style="color: white; margin: 0; font-size: 24px;">{school}</h1>
      <p style="color: rgba(255,255,255,0.9); margin: 10px 0 0 0; font-size: 14px;">Eklavya Model Residential School</p>
    </div>
    <div style="padding: 30px 20px;">
      <h2 style="color: #333; margin: 0 0 20px 0; font-size: 20px;">{title}</h2>
      <div style="background: #f8f9fa; padding: 20px; border-radius: 8px; border-left: 4px solid #667eea;">
        {content}
      </div>
    </div>
    <div style="background: #f8f9fa; padding: 20px; text-align: center; border-top: 1px solid #e9ecef;">
      <p style="color: #666; margin: 0 0 10px 0; font-size: 12px;">This email was sent from {school} School Management System</p>
    </div>
  </div>
</body>
</html>"""

    def _report(self, results: list[RecipientResult]) -> EmailReport:
        sent = sum(1 for r in results if r.status == "sent")
        failed = len(results) - sent
        return EmailReport(
            success=failed == 0,
            results=results,
            message=f"Email sent: {sent} successful, {failed} failed",
        )

    def _all_failed(self, recipients: list[str], reason: str) -> EmailReport:
        self.logger.warning("Email not sent to %d recipients: %s", len(recipients), reason)
        return EmailReport(
            success=False,
            results=[
                RecipientResult(email=r, status="failed", error=reason)
                for r in recipients
            ],
            message=reason,
        )
