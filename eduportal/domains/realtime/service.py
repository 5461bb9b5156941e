# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Named live-update channels on top of the change feed.

A channel groups one or more feed bindings (table, change type,
filters) under a name such as "announcements" or
"notifications_<user id>". Subscribing to an existing name tears down
the previous channel first, so a client never receives duplicates.

Example:
    >>> realtime = RealtimeService(feed, settings)
    >>> handle = realtime.subscribe_user_notifications(user_id, on_notification)
    >>> realtime.is_active(handle.name)
    True
    >>> handle.unsubscribe()
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from eduportal.infrastructure.realtime import (
    ChangeFeed,
    ChangeHandler,
    ChangeType,
    FeedSubscription,
)

if TYPE_CHECKING:
    from eduportal.core.config.settings import Settings

logger = logging.getLogger(__name__)

CONTENT_TABLES = ("news", "announcements", "events")
ADMIN_TABLES = ("profiles", "news", "announcements", "events", "exam_results")


@dataclass(frozen=True)
class ChannelBinding:
    """One table selection within a channel."""

    table: str
    event: str = "*"
    filters: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Channel:
    """A named channel and its live feed subscriptions."""

    name: str
    bindings: tuple[ChannelBinding, ...]
    callback: ChangeHandler
    subscriptions: list[FeedSubscription] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid4()))


@dataclass
class RealtimeSubscription:
    """Handle returned to the subscriber.

    unsubscribe() only removes the channel if this handle still owns it;
    a later subscription under the same name is left untouched.
    """

    name: str
    channel_id: str | None
    service: "RealtimeService"

    @property
    def active(self) -> bool:
        return self.channel_id is not None and self.service.owns(self.name, self.channel_id)

    def unsubscribe(self) -> bool:
        if self.channel_id is None:
            return False
        return self.service.unsubscribe(self.name, channel_id=self.channel_id)


class RealtimeService:
    """Registry of named live-update channels."""

    def __init__(self, feed: ChangeFeed, settings: "Settings") -> None:
        self._feed = feed
        self._settings = settings
        self._channels: dict[str, Channel] = {}

    @property
    def enabled(self) -> bool:
        return self._settings.is_feature_enabled("realtime_updates")

    def subscribe(
        self,
        name: str,
        callback: ChangeHandler,
        bindings: list[ChannelBinding] | tuple[ChannelBinding, ...],
    ) -> RealtimeSubscription:
        """Create or replace a named channel.

        Args:
            name: Channel name.
            callback: Async function receiving each ChangeEvent.
            bindings: Tables, change types and filters to listen to.

        Returns:
            Handle for the channel. When realtime updates are disabled
            the handle is inactive and nothing is registered.
        """
        if not self.enabled:
            logger.info("Realtime updates disabled, not subscribing %s", name)
            return RealtimeSubscription(name=name, channel_id=None, service=self)

        if name in self._channels:
            self._teardown(self._channels.pop(name))
            logger.debug("Replaced realtime channel %s", name)

        channel = Channel(name=name, bindings=tuple(bindings), callback=callback)
        for binding in channel.bindings:
            channel.subscriptions.append(
                self._feed.subscribe(
                    binding.table,
                    callback,
                    event=binding.event,
                    filters=binding.filters,
                )
            )
        self._channels[name] = channel

        logger.info("Subscribed realtime channel %s (%d bindings)", name, len(channel.bindings))
        return RealtimeSubscription(name=name, channel_id=channel.id, service=self)

    def unsubscribe(self, name: str, channel_id: str | None = None) -> bool:
        """Remove a channel by name.

        Args:
            name: Channel name.
            channel_id: When given, only remove the channel if it is still
                this instance.

        Returns:
            True if a channel was removed.
        """
        channel = self._channels.get(name)
        if channel is None:
            return False
        if channel_id is not None and channel.id != channel_id:
            return False

        del self._channels[name]
        self._teardown(channel)
        logger.info("Unsubscribed realtime channel %s", name)
        return True

    def unsubscribe_all(self) -> None:
        for channel in self._channels.values():
            self._teardown(channel)
        count = len(self._channels)
        self._channels.clear()
        logger.info("Unsubscribed all %d realtime channels", count)

    def is_active(self, name: str) -> bool:
        return name in self._channels

    def owns(self, name: str, channel_id: str) -> bool:
        channel = self._channels.get(name)
        return channel is not None and channel.id == channel_id

    def count(self) -> int:
        return len(self._channels)

    def _teardown(self, channel: Channel) -> None:
        for subscription in channel.subscriptions:
            subscription.cancel()
        channel.subscriptions.clear()

    # =========================================================================
    # Convenience channels
    # =========================================================================

    def subscribe_announcements(self, callback: ChangeHandler) -> RealtimeSubscription:
        return self.subscribe("announcements", callback, [ChannelBinding("announcements")])

    def subscribe_news(self, callback: ChangeHandler) -> RealtimeSubscription:
        return self.subscribe("news", callback, [ChannelBinding("news")])

    def subscribe_events(self, callback: ChangeHandler) -> RealtimeSubscription:
        return self.subscribe("events", callback, [ChannelBinding("events")])

    def subscribe_student_exam_results(
        self,
        student_id: UUID,
        callback: ChangeHandler,
    ) -> RealtimeSubscription:
        return self.subscribe(
            f"exam_results_{student_id}",
            callback,
            [ChannelBinding("exam_results", filters={"student_id": student_id})],
        )

    def subscribe_teacher_exam_results(
        self,
        teacher_id: UUID,
        callback: ChangeHandler,
    ) -> RealtimeSubscription:
        return self.subscribe(
            f"teacher_exam_results_{teacher_id}",
            callback,
            [ChannelBinding("exam_results", filters={"teacher_id": teacher_id})],
        )

    def subscribe_user_notifications(
        self,
        user_id: UUID,
        callback: ChangeHandler,
    ) -> RealtimeSubscription:
        """New notifications for one user (inserts only)."""
        return self.subscribe(
            f"notifications_{user_id}",
            callback,
            [
                ChannelBinding(
                    "notifications",
                    event=ChangeType.INSERT.value,
                    filters={"user_id": user_id},
                )
            ],
        )

    def subscribe_content_updates(self, callback: ChangeHandler) -> RealtimeSubscription:
        """News, announcements and events on one channel.

        Each event carries its table, so the callback can tell them apart.
        """
        return self.subscribe(
            "content_updates",
            callback,
            [ChannelBinding(table) for table in CONTENT_TABLES],
        )

    def subscribe_profile_updates(
        self,
        user_id: UUID,
        callback: ChangeHandler,
    ) -> RealtimeSubscription:
        return self.subscribe(
            f"profile_{user_id}",
            callback,
            [ChannelBinding("profiles", filters={"user_id": user_id})],
        )

    def subscribe_admin_updates(self, callback: ChangeHandler) -> RealtimeSubscription:
        return self.subscribe(
            "admin_updates",
            callback,
            [ChannelBinding(table) for table in ADMIN_TABLES],
        )

