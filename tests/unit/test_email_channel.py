# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the email channel.

Resend is stubbed with httpx.MockTransport; SMTP by patching aiosmtplib.send.
"""

import json
from unittest.mock import AsyncMock, patch

import aiosmtplib
import httpx
import pytest
from pydantic import SecretStr

from eduportal.core.config.settings import (
    EmailSettings,
    FeatureSettings,
    NotificationSettings,
    Settings,
)
from eduportal.infrastructure.notifications.channels import EmailChannel, EmailMessage


def with_email(settings: Settings, **email: object) -> Settings:
    return settings.model_copy(update={"email": EmailSettings(**email)})


@pytest.fixture
def resend_settings(settings: Settings) -> Settings:
    return with_email(settings, provider="resend", resend_api_key=SecretStr("re_test"))


class TestEmailMessage:
    """Tests for EmailMessage."""

    def test_single_recipient(self) -> None:
        """Test that a single address becomes a one-element list."""
        message = EmailMessage(to="a@example.com", subject="s", body="b")

        assert message.recipients == ["a@example.com"]

    def test_many_recipients(self) -> None:
        """Test that a list of addresses is kept in order."""
        message = EmailMessage(to=["a@example.com", "b@example.com"], subject="s", body="b")

        assert message.recipients == ["a@example.com", "b@example.com"]


class TestEmailChannelSend:
    """Tests for EmailChannel.send."""

    @pytest.mark.asyncio
    async def test_simulated_provider(self, settings: Settings) -> None:
        """Test that the simulated provider marks every recipient sent."""
        channel = EmailChannel(settings)

        report = await channel.send(
            EmailMessage(to=["a@example.com", "b@example.com"], subject="Hi", body="Body")
        )

        assert report.success is True
        assert report.simulated is True
        assert report.sent_count == 2
        assert report.message == "Simulation: 2 emails processed"

    @pytest.mark.asyncio
    async def test_resend_request(self, resend_settings: Settings) -> None:
        """Test that Resend is called once per recipient with a bearer key."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"id": "email_1"})

        channel = EmailChannel(resend_settings, transport=httpx.MockTransport(handler))
        report = await channel.send(
            EmailMessage(to=["a@example.com", "b@example.com"], subject="Results", body="Done")
        )

        assert report.success is True
        assert report.simulated is False
        assert report.message == "Email sent: 2 successful, 0 failed"
        assert len(captured) == 2

        body = json.loads(captured[0].content)
        assert captured[0].headers["Authorization"] == "Bearer re_test"
        assert body["to"] == "a@example.com"
        assert body["subject"] == "Results"
        assert body["from"] == "EMRS Dornala <noreply@emrs-dornala.edu.in>"
        assert "Done" in body["html"]

    @pytest.mark.asyncio
    async def test_resend_partial_failure(self, resend_settings: Settings) -> None:
        """Test that one rejected address does not fail the others."""

        def handler(request: httpx.Request) -> httpx.Response:
            if json.loads(request.content)["to"] == "bad@example.com":
                return httpx.Response(422, json={"message": "Invalid `to` field"})
            return httpx.Response(200, json={"id": "email_1"})

        channel = EmailChannel(resend_settings, transport=httpx.MockTransport(handler))
        report = await channel.send(
            EmailMessage(to=["ok@example.com", "bad@example.com"], subject="s", body="b")
        )

        assert report.success is False
        assert report.sent_count == 1
        assert report.failed_count == 1
        assert report.message == "Email sent: 1 successful, 1 failed"
        failed = report.results[1]
        assert failed.email == "bad@example.com"
        assert "Invalid `to` field" in failed.error

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, json=["internal error"]),
            httpx.Response(502, text="Bad Gateway"),
        ],
    )
    async def test_resend_unstructured_error_body(
        self,
        resend_settings: Settings,
        response: httpx.Response,
    ) -> None:
        """Test that an error body that is not a JSON object is reported, not raised."""
        channel = EmailChannel(
            resend_settings,
            transport=httpx.MockTransport(lambda request: response),
        )

        report = await channel.send(EmailMessage(to=["ok@example.com"], subject="s", body="b"))

        assert report.success is False
        assert report.failed_count == 1
        assert "Resend API error" in report.results[0].error

    @pytest.mark.asyncio
    async def test_misconfigured_falls_back_to_simulation(self, settings: Settings) -> None:
        """Test that a missing Resend key simulates when fallback is on."""
        channel = EmailChannel(with_email(settings, provider="resend"))

        report = await channel.send(EmailMessage(to="a@example.com", subject="s", body="b"))

        assert report.simulated is True
        assert report.success is True

    @pytest.mark.asyncio
    async def test_misconfigured_without_fallback(self, settings: Settings) -> None:
        """Test that a missing Resend key fails every recipient when fallback is off."""
        settings = with_email(settings, provider="resend").model_copy(
            update={"notifications": NotificationSettings(simulation_fallback=False)}
        )
        channel = EmailChannel(settings)

        report = await channel.send(
            EmailMessage(to=["a@example.com", "b@example.com"], subject="s", body="b")
        )

        assert report.success is False
        assert report.failed_count == 2
        assert report.message == "Resend API key not configured"

    @pytest.mark.asyncio
    async def test_disabled_feature(self, settings: Settings) -> None:
        """Test that the feature flag blocks sending."""
        settings = settings.model_copy(
            update={"features": FeatureSettings(email_notifications=False)}
        )

        report = await EmailChannel(settings).send(
            EmailMessage(to="a@example.com", subject="s", body="b")
        )

        assert report.success is False
        assert report.results[0].error == "Email notifications are disabled"

    @pytest.mark.asyncio
    async def test_smtp_send(self, settings: Settings) -> None:
        """Test that SMTP delivery goes through aiosmtplib."""
        settings = with_email(settings, provider="smtp", smtp_host="smtp.example.com")
        channel = EmailChannel(settings)

        with patch.object(aiosmtplib, "send", new=AsyncMock()) as mock_send:
            report = await channel.send(EmailMessage(to="a@example.com", subject="s", body="b"))

        assert report.success is True
        mock_send.assert_awaited_once()
        mime = mock_send.await_args.args[0]
        assert mime["To"] == "a@example.com"
        assert mock_send.await_args.kwargs["hostname"] == "smtp.example.com"

    @pytest.mark.asyncio
    async def test_smtp_error_is_recorded(self, settings: Settings) -> None:
        """Test that an SMTP error fails only that recipient."""
        settings = with_email(settings, provider="smtp", smtp_host="smtp.example.com")
        channel = EmailChannel(settings)

        failing = AsyncMock(side_effect=aiosmtplib.SMTPException("relay denied"))
        with patch.object(aiosmtplib, "send", new=failing):
            report = await channel.send(EmailMessage(to="a@example.com", subject="s", body="b"))

        assert report.success is False
        assert "relay denied" in report.results[0].error


class TestEmailChannelConfiguration:
    """Tests for check_configuration and format_html."""

    def test_resend_without_key(self, settings: Settings) -> None:
        check = EmailChannel(with_email(settings, provider="resend")).check_configuration()

        assert check.success is False
        assert check.provider == "resend"

    def test_smtp_with_host(self, settings: Settings) -> None:
        check = EmailChannel(
            with_email(settings, provider="smtp", smtp_host="smtp.example.com")
        ).check_configuration()

        assert check.success is True
        assert check.message == "SMTP configured"

    def test_format_html_escapes_content(self, settings: Settings) -> None:
        """Test that the branded template escapes user text."""
        html = EmailChannel(settings).format_html("<script>x</script>\nline two", "Subject")

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "line two" in html
        assert "EMRS Dornala" in html
