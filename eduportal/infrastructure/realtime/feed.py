# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-process change feed for live updates.

Every write made by the content and notification services is published
here as a row-level change (INSERT, UPDATE or DELETE on a table).
Subscribers select changes by table, change type and column equality
filters, the same shape as a database replication channel.

Example:
    feed = ChangeFeed()

    async def on_news(change: ChangeEvent) -> None:
        print(change.table, change.event_type, change.new)

    subscription = feed.subscribe("news", on_news)
    feed.subscribe("notifications", on_mine, event="INSERT", filters={"user_id": uid})

    await feed.publish("news", ChangeType.INSERT, new=row.to_dict())
    subscription.cancel()
"""

import asyncio
import fnmatch
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable
from uuid import uuid4

from eduportal.utils.datetime import format_iso, utc_now

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    """Row-level change kinds."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass
class ChangeEvent:
    """A single row change.

    Attributes:
        table: Table the row belongs to.
        event_type: Kind of change.
        new: Row after the change (empty for DELETE).
        old: Row before the change, when known.
        event_id: Unique event identifier.
        commit_timestamp: When the change was published.
    """

    table: str
    event_type: ChangeType
    new: dict[str, Any] = field(default_factory=dict)
    old: dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid4()))
    commit_timestamp: datetime = field(default_factory=utc_now)

    @property
    def record(self) -> dict[str, Any]:
        """The row a filter is evaluated against."""
        if self.event_type == ChangeType.DELETE:
            return self.old
        return self.new

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation sent to live clients."""
        return {
            "event_id": self.event_id,
            "table": self.table,
            "eventType": self.event_type.value,
            "new": self.new,
            "old": self.old,
            "commit_timestamp": format_iso(self.commit_timestamp),
        }


ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]


@dataclass(eq=False)
class FeedSubscription:
    """Handle for one feed subscription.

    Attributes:
        table: Table name or fnmatch pattern.
        event: Change type to receive, or "*" for all.
        filters: Column equality filters, all of which must match.
        handler: Async callback.
    """

    table: str
    event: str
    filters: dict[str, Any]
    handler: ChangeHandler
    feed: "ChangeFeed"
    id: str = field(default_factory=lambda: str(uuid4()))

    def matches(self, change: ChangeEvent) -> bool:
        """Check whether a change should be delivered to this subscription."""
        if not fnmatch.fnmatch(change.table, self.table):
            return False
        if self.event != "*" and self.event != change.event_type.value:
            return False
        record = change.record
        for column, expected in self.filters.items():
            if str(record.get(column)) != str(expected):
                return False
        return True

    def cancel(self) -> bool:
        """Remove this subscription from its feed.

        Returns:
            True if the subscription was still active.
        """
        return self.feed.unsubscribe(self)


class ChangeFeed:
    """Async publish/subscribe hub for row changes.

    Designed for single-loop use; subscriptions are plain list entries
    and are never touched from another thread.
    """

    def __init__(self) -> None:
        self._subscriptions: list[FeedSubscription] = []
        self._event_count = 0

    def subscribe(
        self,
        table: str,
        handler: ChangeHandler,
        event: str = "*",
        filters: dict[str, Any] | None = None,
    ) -> FeedSubscription:
        """Subscribe to changes on a table.

        Args:
            table: Table name, or an fnmatch pattern such as "*".
            handler: Async function receiving each matching ChangeEvent.
            event: "INSERT", "UPDATE", "DELETE" or "*".
            filters: Column equality filters, e.g. {"user_id": uid}.

        Returns:
            The subscription handle.

        Raises:
            ValueError: If event is not a known change type or "*".
        """
        if event != "*" and event not in ChangeType.__members__:
            raise ValueError(f"Unknown change type: {event}")

        subscription = FeedSubscription(
            table=table,
            event=event,
            filters=dict(filters or {}),
            handler=handler,
            feed=self,
        )
        self._subscriptions.append(subscription)
        logger.debug("Subscribed to %s:%s filters=%s", table, event, subscription.filters)
        return subscription

    def unsubscribe(self, subscription: FeedSubscription) -> bool:
        """Remove a subscription.

        Returns:
            True if it was found and removed, False otherwise.
        """
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            return False
        return True

    async def publish(
        self,
        table: str,
        event_type: ChangeType,
        new: dict[str, Any] | None = None,
        old: dict[str, Any] | None = None,
    ) -> ChangeEvent:
        """Publish a change to all matching subscribers.

        Handlers run concurrently. A failing handler is logged and does
        not affect the others or the publisher.

        Returns:
            The published ChangeEvent.
        """
        change = ChangeEvent(
            table=table,
            event_type=event_type,
            new=new or {},
            old=old or {},
        )
        self._event_count += 1

        targets = [s for s in self._subscriptions if s.matches(change)]
        if not targets:
            return change

        logger.debug(
            "Publishing %s on %s to %d subscribers",
            event_type.value,
            table,
            len(targets),
        )

        async def safe_call(subscription: FeedSubscription) -> None:
            try:
                await subscription.handler(change)
            except Exception as e:
                logger.error(
                    "Change handler error on %s: %s",
                    table,
                    str(e),
                    exc_info=True,
                )

        await asyncio.gather(*[safe_call(s) for s in targets], return_exceptions=True)
        return change

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._subscriptions.clear()

    def get_stats(self) -> dict[str, Any]:
        """Get feed statistics.

        Returns:
            Dictionary with subscription and event counts.
        """
        return {
            "subscriptions": len(self._subscriptions),
            "tables": sorted({s.table for s in self._subscriptions}),
            "events_published": self._event_count,
        }
