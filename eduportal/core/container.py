# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Start-up wiring of the service objects.

Every service is constructed once per process and handed its
collaborators explicitly. The API reads the container from app.state;
scripts and tests build their own.

Example:
    >>> container = ServiceContainer.build(get_settings())
    >>> await container.content.publish(ContentKind.NEWS, news_id)
"""

import logging
from dataclasses import dataclass

from eduportal.core.config.settings import Settings
from eduportal.domains.auth.identity import ContextIdentityProvider, IdentityProvider
from eduportal.domains.auth.jwt import JWTManager
from eduportal.domains.content.service import ContentService
from eduportal.domains.notification.service import NotificationService
from eduportal.domains.realtime.service import RealtimeService
from eduportal.infrastructure.database.connection import SessionFactory, get_session
from eduportal.infrastructure.notifications.channels import EmailChannel, SMSChannel
from eduportal.infrastructure.realtime import ChangeFeed

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """All long-lived services of one process."""

    settings: Settings
    feed: ChangeFeed
    sms: SMSChannel
    email: EmailChannel
    notifications: NotificationService
    content: ContentService
    realtime: RealtimeService
    jwt: JWTManager

    @classmethod
    def build(
        cls,
        settings: Settings,
        session_factory: SessionFactory = get_session,
        identity: IdentityProvider | None = None,
        sms: SMSChannel | None = None,
        email: EmailChannel | None = None,
    ) -> "ServiceContainer":
        """Construct and wire every service.

        Args:
            settings: Application settings.
            session_factory: Opens database sessions; get_session by default.
            identity: Current-user source; the request context by default.
            sms: Pre-built SMS transport, e.g. with a stubbed HTTP transport.
            email: Pre-built email transport.

        Returns:
            The wired container.
        """
        feed = ChangeFeed()
        sms = sms or SMSChannel(settings)
        email = email or EmailChannel(settings)

        notifications = NotificationService(session_factory, sms, email, feed, settings)
        content = ContentService(
            session_factory,
            notifications,
            feed,
            identity or ContextIdentityProvider(),
        )

        logger.info(
            "Services ready (sms simulation=%s, email provider=%s)",
            sms.simulation_enabled,
            settings.email.provider,
        )

        return cls(
            settings=settings,
            feed=feed,
            sms=sms,
            email=email,
            notifications=notifications,
            content=content,
            realtime=RealtimeService(feed, settings),
            jwt=JWTManager(settings.jwt),
        )

    def shutdown(self) -> None:
        """Drop every live channel and feed subscription."""
        self.realtime.unsubscribe_all()
        self.feed.clear()
