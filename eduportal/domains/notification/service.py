# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification service for recording and delivering notifications.

This service handles the complete flow for one notification:
1. Persist a "pending" record
2. Dispatch through the SMS or email transport (in-app needs none)
3. Move the record to "sent" or "failed"

Bulk sends fan out one send per recipient concurrently and aggregate
the outcomes. Templated senders wrap the message templates for exam
results, announcements, event reminders, urgent alerts and welcomes.

Failures never propagate: every operation logs and returns False, zero
or an empty list.

Example:
    >>> service = NotificationService(get_session, sms, email, feed, settings)
    >>> ok = await service.send(NotificationCreate(user_id=uid, title="Hi", message="..."))
    >>> counts = await service.send_announcement_notification(user_ids, title, content)
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import func, select, update

from eduportal.core.exceptions import ValidationFailure
from eduportal.domains.notification.schemas import (
    BulkNotificationCreate,
    BulkResult,
    NotificationCreate,
    Priority,
)
from eduportal.infrastructure.database.connection import SessionFactory
from eduportal.infrastructure.database.models import Notification, Profile
from eduportal.infrastructure.notifications import templates
from eduportal.infrastructure.notifications.channels import (
    ChannelResult,
    ChannelType,
    DeliveryStatus,
    EmailChannel,
    EmailMessage,
    EmailReport,
    SMSChannel,
    SMSMessage,
    format_phone_number,
    validate_phone_number,
)
from eduportal.infrastructure.realtime import ChangeFeed, ChangeType
from eduportal.utils.datetime import utc_now

if TYPE_CHECKING:
    from eduportal.core.config.settings import Settings

logger = logging.getLogger(__name__)

NOTIFICATIONS_TABLE = "notifications"


class NotificationService:
    """Service for sending notifications to users.

    Attributes:
        sms: SMS transport.
        email: Email transport.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        sms: SMSChannel,
        email: EmailChannel,
        feed: ChangeFeed,
        settings: "Settings",
    ) -> None:
        """Initialize the notification service.

        Args:
            session_factory: Opens one database session per unit of work.
            sms: SMS transport.
            email: Email transport.
            feed: Change feed that receives record inserts and updates.
            settings: Application settings.
        """
        self._session_factory = session_factory
        self._feed = feed
        self._settings = settings
        self.sms = sms
        self.email = email

    # =========================================================================
    # Sending
    # =========================================================================

    async def send(self, notification: NotificationCreate) -> bool:
        """Record and deliver one notification.

        The pending record is committed before the transport is called,
        so a failed delivery always leaves a "failed" record behind.

        Args:
            notification: What to send and to whom.

        Returns:
            True if the transport accepted the message.
        """
        try:
            record = await self._create_record(notification)
        except Exception as e:
            logger.error(
                "Failed to create notification record for %s: %s",
                notification.user_id,
                str(e),
            )
            return False

        delivered, delivery = await self._dispatch(notification)
        status = DeliveryStatus.SENT if delivered else DeliveryStatus.FAILED

        try:
            await self._update_status(record, status, delivery)
        except Exception as e:
            logger.error(
                "Failed to update notification %s to %s: %s",
                record.id,
                status.value,
                str(e),
            )
            return False

        return delivered

    async def send_bulk(self, bulk: BulkNotificationCreate) -> BulkResult:
        """Send the same notification to many users concurrently.

        Each recipient goes through send() independently; one failure
        does not stop the others.

        Args:
            bulk: Notification content and recipient ids.

        Returns:
            Success, failure and total counts.
        """
        outcomes = await asyncio.gather(
            *(self.send(bulk.for_user(user_id)) for user_id in bulk.user_ids),
            return_exceptions=True,
        )

        success = sum(1 for outcome in outcomes if outcome is True)
        result = BulkResult(
            success=success,
            failed=len(outcomes) - success,
            total=len(outcomes),
        )
        logger.info(
            "Bulk notification '%s': %d sent, %d failed",
            bulk.title,
            result.success,
            result.failed,
        )
        return result

    async def _create_record(self, notification: NotificationCreate) -> Notification:
        data: dict[str, Any] = dict(notification.data or {})
        data.setdefault("priority", notification.priority)

        record = Notification(
            id=uuid4(),
            user_id=notification.user_id,
            title=notification.title,
            message=notification.message,
            type=notification.type.value,
            status=DeliveryStatus.PENDING.value,
            read=False,
            data=data,
            created_at=utc_now(),
        )

        async with self._session_factory() as session:
            session.add(record)

        await self._feed.publish(NOTIFICATIONS_TABLE, ChangeType.INSERT, new=record.to_dict())
        return record

    async def _update_status(
        self,
        record: Notification,
        status: DeliveryStatus,
        delivery: dict[str, Any] | None,
    ) -> None:
        old = record.to_dict()
        values: dict[str, Any] = {"status": status.value}
        if delivery:
            values["data"] = {**(record.data or {}), "delivery": delivery}

        async with self._session_factory() as session:
            await session.execute(
                update(Notification)
                .where(Notification.id == record.id)
                .values(**values)
            )

        await self._feed.publish(
            NOTIFICATIONS_TABLE,
            ChangeType.UPDATE,
            new={**old, **values},
            old=old,
        )

    async def _dispatch(
        self, notification: NotificationCreate
    ) -> tuple[bool, dict[str, Any] | None]:
        try:
            if notification.type == ChannelType.SMS:
                result = await self._dispatch_sms(notification)
                return result.succeeded, result.to_dict()

            if notification.type == ChannelType.EMAIL:
                report = await self._dispatch_email(notification)
                return report.success, {"channel": "email", "message": report.message}

            if notification.type == ChannelType.IN_APP:
                # The record itself is the in-app delivery
                return True, None

            logger.error("Unsupported notification type: %s", notification.type.value)
            return False, {"error": f"Unsupported notification type: {notification.type.value}"}

        except ValidationFailure as e:
            logger.warning("Notification to %s not sent: %s", notification.user_id, e.message)
            return False, {"error": e.message}
        except Exception as e:
            logger.error(
                "%s notification to %s failed: %s",
                notification.type.value,
                notification.user_id,
                str(e),
                exc_info=True,
            )
            return False, {"error": str(e)}

    async def _dispatch_sms(self, notification: NotificationCreate) -> ChannelResult:
        profile = await self._get_profile(notification.user_id)
        if profile is None or not profile.phone:
            raise ValidationFailure("User phone number not found")

        phone = format_phone_number(profile.phone)
        if not validate_phone_number(phone):
            raise ValidationFailure(f"Invalid phone number format: {profile.phone}")

        result = await self.sms.send(
            SMSMessage(to=phone, body=notification.message, user_id=str(notification.user_id))
        )
        logger.info(
            "SMS attempt to %s for user %s: %s (sid=%s, simulated=%s)",
            phone,
            notification.user_id,
            result.status.value,
            result.message_id,
            result.simulated,
        )
        return result

    async def _dispatch_email(self, notification: NotificationCreate) -> EmailReport:
        profile = await self._get_profile(notification.user_id)
        if profile is None or not profile.email:
            raise ValidationFailure("User email not found")

        kind = (notification.data or {}).get("type", "general")
        if kind not in ("announcement", "news", "event", "exam_result"):
            kind = "general"

        return await self.email.send(
            EmailMessage(
                to=profile.email,
                subject=notification.title,
                body=notification.message,
                kind=kind,
            )
        )

    async def _get_profile(self, user_id: UUID) -> Profile | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Profile).where(Profile.user_id == user_id))
            return result.scalar_one_or_none()

    # =========================================================================
    # Inbox
    # =========================================================================

    async def list_for_user(self, user_id: UUID, limit: int = 50) -> list[Notification]:
        """Get a user's notifications, newest first.

        Returns:
            Up to limit notifications, or an empty list on failure.
        """
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Notification)
                    .where(Notification.user_id == user_id)
                    .order_by(Notification.created_at.desc())
                    .limit(limit)
                )
                return list(result.scalars().all())
        except Exception as e:
            logger.error("Failed to fetch notifications for %s: %s", user_id, str(e))
            return []

    async def mark_read(self, notification_id: UUID, user_id: UUID | None = None) -> bool:
        """Mark one notification as read.

        Args:
            notification_id: Notification to mark.
            user_id: When given, only a notification owned by this user is touched.

        Returns:
            True unless the update failed.
        """
        stmt = update(Notification).where(Notification.id == notification_id)
        if user_id is not None:
            stmt = stmt.where(Notification.user_id == user_id)

        try:
            async with self._session_factory() as session:
                await session.execute(stmt.values(read=True))
            return True
        except Exception as e:
            logger.error("Failed to mark notification %s as read: %s", notification_id, str(e))
            return False

    async def mark_all_read(self, user_id: UUID) -> bool:
        """Mark every unread notification of a user as read."""
        try:
            async with self._session_factory() as session:
                await session.execute(
                    update(Notification)
                    .where(Notification.user_id == user_id)
                    .where(Notification.read.is_(False))
                    .values(read=True)
                )
            return True
        except Exception as e:
            logger.error("Failed to mark all notifications read for %s: %s", user_id, str(e))
            return False

    async def unread_count(self, user_id: UUID) -> int:
        """Count a user's unread notifications, 0 on failure."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(func.count())
                    .select_from(Notification)
                    .where(Notification.user_id == user_id)
                    .where(Notification.read.is_(False))
                )
                return result.scalar_one() or 0
        except Exception as e:
            logger.error("Failed to get unread count for %s: %s", user_id, str(e))
            return 0

    # =========================================================================
    # Templated senders
    # =========================================================================

    async def send_exam_result_notification(
        self,
        student_id: UUID,
        exam_name: str,
        grade: str,
        student_name: str | None = None,
    ) -> bool:
        """Tell a student their exam result is published."""
        return await self.send(
            NotificationCreate(
                user_id=student_id,
                type=ChannelType.SMS,
                title="Exam Result Available",
                message=templates.exam_result(student_name or "Student", exam_name, grade),
                data={"examName": exam_name, "grade": grade, "type": "exam_result"},
                priority="high",
            )
        )

    async def send_announcement_notification(
        self,
        user_ids: list[UUID],
        title: str,
        content: str,
    ) -> BulkResult:
        """Broadcast an announcement preview to many users."""
        message = templates.announcement(
            title,
            content,
            self._settings.notifications.sms_preview_length,
        )
        return await self._send_templated(
            user_ids,
            title="School Announcement",
            message=message,
            data={"title": title, "content": content, "type": "announcement"},
        )

    async def send_event_reminder_notification(
        self,
        user_ids: list[UUID],
        event_title: str,
        event_date: str,
        location: str | None = None,
    ) -> BulkResult:
        """Remind many users about an upcoming event."""
        return await self._send_templated(
            user_ids,
            title="Event Reminder",
            message=templates.event_reminder(event_title, event_date, location),
            data={
                "eventTitle": event_title,
                "eventDate": event_date,
                "location": location,
                "type": "event_reminder",
            },
        )

    async def send_urgent_alert(self, user_ids: list[UUID], message: str) -> BulkResult:
        """Send an urgent alert to many users."""
        return await self._send_templated(
            user_ids,
            title="Urgent Alert",
            message=templates.urgent_alert(message),
            data={"type": "urgent_alert"},
            priority="high",
        )

    async def send_welcome_notification(self, user_id: UUID, student_name: str) -> bool:
        """Welcome a newly created student account."""
        school_name = self._settings.school_name
        return await self.send(
            NotificationCreate(
                user_id=user_id,
                type=ChannelType.SMS,
                title=f"Welcome to {school_name}",
                message=templates.welcome(student_name, school_name),
                data={"type": "welcome"},
            )
        )

    async def _send_templated(
        self,
        user_ids: list[UUID],
        title: str,
        message: str,
        data: dict[str, Any],
        priority: Priority = "medium",
    ) -> BulkResult:
        return await self.send_bulk(
            BulkNotificationCreate(
                user_ids=user_ids,
                type=ChannelType.SMS,
                title=title,
                message=message,
                data=data,
                priority=priority,
            )
        )
