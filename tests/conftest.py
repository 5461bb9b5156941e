# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Settings with simulation and zero delays
- A mock database session and a session factory yielding it
- An in-process change feed
"""

from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest
from pydantic import SecretStr

from eduportal.core.config.settings import (
    EmailSettings,
    NotificationSettings,
    Settings,
    TwilioSettings,
)
from eduportal.infrastructure.realtime import ChangeFeed


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Test settings: no providers configured, simulation on, no delays."""
    return Settings(
        environment="test",
        notifications=NotificationSettings(
            simulation_fallback=True,
            simulated_delay_seconds=0.0,
            bulk_sms_delay_seconds=0.0,
        ),
        twilio=TwilioSettings(account_sid="", auth_token=SecretStr(""), phone_number=""),
        email=EmailSettings(provider="simulated"),
    )


@pytest.fixture
def twilio_settings() -> TwilioSettings:
    """Fully configured Twilio credentials."""
    return TwilioSettings(
        account_sid="AC123",
        auth_token=SecretStr("twilio-token"),
        phone_number="+15550001111",
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create mock database session."""
    session = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock(return_value=None)
    return session


@pytest.fixture
def session_factory(mock_session: AsyncMock):
    """Session factory that always yields mock_session."""

    @asynccontextmanager
    async def factory():
        yield mock_session

    return factory


@pytest.fixture
def failing_session_factory():
    """Session factory whose sessions fail on entry."""

    @asynccontextmanager
    async def factory():
        raise RuntimeError("database unavailable")
        yield  # pragma: no cover

    return factory


@pytest.fixture
def feed() -> ChangeFeed:
    """Create a fresh change feed."""
    return ChangeFeed()


# =============================================================================
# Helpers
# =============================================================================


def _mock_result(
    scalar: Any = None,
    scalars: list[Any] | None = None,
) -> MagicMock:
    """Create a mock result supporting the accessors the services use."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = scalar
    result.scalars.return_value.all.return_value = scalars or []
    return result


def _mock_profile(
    user_id: UUID,
    phone: str | None = "9876543210",
    email: str | None = "student@example.com",
    full_name: str = "Asha Rao",
    role: str = "student",
) -> MagicMock:
    """Create a mock profile row."""
    profile = MagicMock()
    profile.user_id = user_id
    profile.phone = phone
    profile.email = email
    profile.full_name = full_name
    profile.role = role
    return profile


@pytest.fixture
def make_result():
    """Factory for mock query results."""
    return _mock_result


@pytest.fixture
def make_profile():
    """Factory for mock profile rows."""
    return _mock_profile
