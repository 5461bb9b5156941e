# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content service for school news, announcements, events and exam results.

This module provides the ContentService that handles:
- Listing and fetching content with filters
- Creating, updating and deleting content
- Publishing, with notification fan-out for announcements and exam results
- Event reminders and dashboard statistics

Kind-specific behaviour comes from the CONTENT_KINDS handler table.
Every successful write is published to the change feed.

Example:
    >>> service = ContentService(get_session, notifications, feed, identity)
    >>> news = await service.create(ContentKind.NEWS, NewsCreate(title="...", content="..."))
    >>> await service.publish(ContentKind.ANNOUNCEMENT, announcement_id)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel
from sqlalchemy import Select, func, select

from eduportal.core.exceptions import AuthRequiredError
from eduportal.domains.auth.identity import IdentityProvider
from eduportal.domains.content.kinds import ContentKind, ContentSpec, get_spec
from eduportal.domains.content.schemas import ContentFilters, ContentStats
from eduportal.domains.notification.schemas import BulkResult
from eduportal.domains.notification.service import NotificationService
from eduportal.infrastructure.database.connection import SessionFactory
from eduportal.infrastructure.database.models import (
    Announcement,
    Base,
    Event,
    ExamResult,
    ExamStatus,
    News,
    Profile,
    UserRole,
)
from eduportal.infrastructure.realtime import ChangeFeed, ChangeType
from eduportal.utils.datetime import utc_now

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
AUDIENCE_ROLES = (UserRole.STUDENT, UserRole.TEACHER)
EVENT_DATE_FORMAT = "%A, %d %B %Y at %I:%M %p"

PublishHook = Callable[[Any], Awaitable[None]]


class ContentService:
    """Service for managing school content.

    Attributes:
        _session_factory: Opens one database session per unit of work.
        _notifications: Notification service used for publish fan-out.
        _feed: Change feed receiving every write.
        _identity: Source of the authenticated author.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        notifications: NotificationService,
        feed: ChangeFeed,
        identity: IdentityProvider,
    ) -> None:
        """Initialize the content service.

        Args:
            session_factory: Opens one database session per unit of work.
            notifications: Notification service used for publish fan-out.
            feed: Change feed receiving every write.
            identity: Source of the authenticated author.
        """
        self._session_factory = session_factory
        self._notifications = notifications
        self._feed = feed
        self._identity = identity

        self._publish_hooks: dict[ContentKind, PublishHook] = {
            ContentKind.ANNOUNCEMENT: self._notify_announcement,
            ContentKind.EXAM_RESULT: self._notify_exam_result,
        }

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, kind: ContentKind | str, content_id: UUID) -> Base | None:
        """Fetch one item, or None when missing or on failure."""
        spec = get_spec(kind)
        try:
            async with self._session_factory() as session:
                return await session.get(spec.model, content_id)
        except Exception as e:
            logger.error("Failed to fetch %s %s: %s", spec.table, content_id, str(e))
            return None

    async def list_student_exam_results(
        self,
        student_id: UUID,
        published_only: bool = False,
    ) -> Sequence[ExamResult]:
        """A student's exam results, most recent exam first."""
        stmt = select(ExamResult).where(ExamResult.student_id == student_id)
        if published_only:
            stmt = stmt.where(ExamResult.status == ExamStatus.PUBLISHED)
        return await self._fetch(stmt.order_by(ExamResult.exam_date.desc()), "exam_results")

    async def list_teacher_exam_results(self, teacher_id: UUID) -> Sequence[ExamResult]:
        """Exam results entered by a teacher, most recent exam first."""
        stmt = (
            select(ExamResult)
            .where(ExamResult.teacher_id == teacher_id)
            .order_by(ExamResult.exam_date.desc())
        )
        return await self._fetch(stmt, "exam_results")

    async def stats(self) -> ContentStats:
        """Dashboard counters.

        The seven counts run concurrently, each in its own session. If
        any of them fails every counter is reported as zero.
        """
        queries: dict[str, Select] = {
            "total_news": select(func.count()).select_from(News),
            "total_announcements": select(func.count()).select_from(Announcement),
            "total_events": select(func.count()).select_from(Event),
            "total_exam_results": select(func.count()).select_from(ExamResult),
            "published_news": select(func.count())
            .select_from(News)
            .where(News.published.is_(True)),
            "published_announcements": select(func.count())
            .select_from(Announcement)
            .where(Announcement.published.is_(True)),
            "pending_exam_results": select(func.count())
            .select_from(ExamResult)
            .where(ExamResult.status == ExamStatus.PENDING),
        }

        try:
            counts = await asyncio.gather(*(self._count(q) for q in queries.values()))
        except Exception as e:
            logger.error("Failed to fetch content stats: %s", str(e))
            return ContentStats()

        return ContentStats(**dict(zip(queries, counts)))

    # =========================================================================
    # Writes
    # =========================================================================

    async def create(
        self,
        kind: ContentKind | str,
        payload: BaseModel | dict[str, Any],
    ) -> Base | None:
        """Create an item authored by the current user.

        Exam results get a derived grade when none is given, and
        published_at when created published. Announcements and exam
        results created already published are notified right away.

        Args:
            kind: Content kind.
            payload: Create schema instance (or plain dict) for the kind.

        Returns:
            The created row, or None when the insert failed.

        Raises:
            AuthRequiredError: If no user is authenticated.
        """
        spec = get_spec(kind)
        user = self._identity.current()
        if user is None:
            raise AuthRequiredError()

        values = _validated(spec.create_schema, payload).model_dump()
        values[spec.author_column] = user.id
        if spec.prepare is not None:
            values = spec.prepare(values)

        now = utc_now()
        row = spec.model(id=uuid4(), created_at=now, updated_at=now, **values)

        try:
            async with self._session_factory() as session:
                session.add(row)
        except Exception as e:
            logger.error("Failed to create %s: %s", spec.table, str(e))
            return None

        logger.info("Created %s %s by %s", spec.table, row.id, user.id)
        await self._feed.publish(spec.table, ChangeType.INSERT, new=row.to_dict())

        if spec.notify_on_create and spec.is_published(row):
            await self._run_publish_hook(spec, row)

        return row

    async def update(
        self,
        kind: ContentKind | str,
        content_id: UUID,
        payload: BaseModel | dict[str, Any],
    ) -> Base | None:
        """Apply a partial update.

        Changing an exam result's marks without a grade re-derives grade
        and score from the merged values.

        Returns:
            The updated row, or None when missing or on failure.
        """
        spec = get_spec(kind)
        values = _validated(spec.update_schema, payload).model_dump(exclude_unset=True)

        try:
            async with self._session_factory() as session:
                row = await session.get(spec.model, content_id)
                if row is None:
                    return None
                old = row.to_dict()
                if spec.revise is not None:
                    values = spec.revise(row, values)
                for column, value in values.items():
                    setattr(row, column, value)
                row.updated_at = utc_now()
        except Exception as e:
            logger.error("Failed to update %s %s: %s", spec.table, content_id, str(e))
            return None

        await self._feed.publish(spec.table, ChangeType.UPDATE, new=row.to_dict(), old=old)
        return row

    async def delete(self, kind: ContentKind | str, content_id: UUID) -> bool:
        """Delete an item.

        Returns:
            True if a row was removed, False when missing or on failure.
        """
        spec = get_spec(kind)

        try:
            async with self._session_factory() as session:
                row = await session.get(spec.model, content_id)
                if row is None:
                    return False
                old = row.to_dict()
                await session.delete(row)
        except Exception as e:
            logger.error("Failed to delete %s %s: %s", spec.table, content_id, str(e))
            return False

        logger.info("Deleted %s %s", spec.table, content_id)
        await self._feed.publish(spec.table, ChangeType.DELETE, old=old)
        return True

    async def publish(self, kind: ContentKind | str, content_id: UUID) -> bool:
        """Publish an item and notify its audience.

        News and announcements get published=true; exam results move to
        status "published" with published_at set. Announcements are sent
        to every student and teacher, exam results to their student.
        Notification failures are logged and do not change the result.

        Returns:
            True if the item was published, False when the kind cannot be
            published, the row is missing, or the update failed.
        """
        spec = get_spec(kind)
        if not spec.publishable:
            logger.warning("%s cannot be published", spec.table)
            return False

        try:
            async with self._session_factory() as session:
                row = await session.get(spec.model, content_id)
                if row is None:
                    logger.warning("Cannot publish missing %s %s", spec.table, content_id)
                    return False
                old = row.to_dict()
                for column, value in spec.publish_values().items():
                    setattr(row, column, value)
                row.updated_at = utc_now()
        except Exception as e:
            logger.error("Failed to publish %s %s: %s", spec.table, content_id, str(e))
            return False

        logger.info("Published %s %s", spec.table, content_id)
        await self._feed.publish(spec.table, ChangeType.UPDATE, new=row.to_dict(), old=old)
        await self._run_publish_hook(spec, row)
        return True

    async def remind_event(self, event_id: UUID) -> BulkResult:
        """Send the event reminder to every student and teacher.

        Returns:
            Fan-out counts; all zero when the event is missing or on failure.
        """
        event = await self.get(ContentKind.EVENT, event_id)
        if event is None:
            return BulkResult()

        try:
            user_ids = await self._audience()
            if not user_ids:
                return BulkResult()
            return await self._notifications.send_event_reminder_notification(
                user_ids,
                event.title,
                event.event_date.strftime(EVENT_DATE_FORMAT),
                event.location,
            )
        except Exception as e:
            logger.error("Failed to send reminder for event %s: %s", event_id, str(e))
            return BulkResult()

    # =========================================================================
    # Publish hooks
    # =========================================================================

    async def _run_publish_hook(self, spec: ContentSpec, row: Any) -> None:
        hook = self._publish_hooks.get(spec.kind)
        if hook is None:
            return
        try:
            await hook(row)
        except Exception as e:
            logger.error("Failed to notify about %s %s: %s", spec.table, row.id, str(e))

    async def _notify_announcement(self, announcement: Announcement) -> None:
        user_ids = await self._audience()
        if not user_ids:
            return
        result = await self._notifications.send_announcement_notification(
            user_ids,
            announcement.title,
            announcement.content,
        )
        logger.info(
            "Announcement %s sent to %d/%d users",
            announcement.id,
            result.success,
            result.total,
        )

    async def _notify_exam_result(self, exam_result: ExamResult) -> None:
        student_name = await self._profile_name(exam_result.student_id)
        await self._notifications.send_exam_result_notification(
            exam_result.student_id,
            exam_result.exam_name,
            exam_result.grade or "N/A",
            student_name,
        )

    async def _audience(self) -> Sequence[UUID]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Profile.user_id).where(Profile.role.in_(AUDIENCE_ROLES))
            )
            return result.scalars().all()

    async def _profile_name(self, user_id: UUID) -> str | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Profile.full_name).where(Profile.user_id == user_id)
                )
                return result.scalar_one_or_none()
        except Exception as e:
            logger.warning("Could not load profile name for %s: %s", user_id, str(e))
            return None

    # =========================================================================
    # Query helpers
    # =========================================================================

    async def _fetch(self, stmt: Select, table: str) -> Sequence[Any]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.scalars().all()
        except Exception as e:
            logger.error("Failed to fetch %s: %s", table, str(e))
            return []

    async def _count(self, stmt: Select) -> int:
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one() or 0

    # Defined last: the method name shadows the builtin inside the class body
    async def list(
        self,
        kind: ContentKind | str,
        filters: ContentFilters | None = None,
    ) -> Sequence[Base]:
        """List items of one kind.

        Filters are conjunctive. With an offset, the window
        [offset, offset + (limit or 10)) is returned.

        Returns:
            Matching rows in the kind's default order, [] on failure.
        """
        spec = get_spec(kind)
        filters = filters or ContentFilters()

        stmt = select(spec.model).order_by(*spec.order_by)

        if filters.published is not None and spec.published_filter is not None:
            stmt = stmt.where(spec.published_filter(filters.published))
        if filters.author_id is not None:
            stmt = stmt.where(spec.author == filters.author_id)
        if filters.type is not None and spec.type_column is not None:
            stmt = stmt.where(getattr(spec.model, spec.type_column) == filters.type)

        if filters.offset:
            stmt = stmt.offset(filters.offset).limit(filters.limit or DEFAULT_PAGE_SIZE)
        elif filters.limit:
            stmt = stmt.limit(filters.limit)

        return await self._fetch(stmt, spec.table)


def _validated(schema: type[BaseModel], payload: BaseModel | dict[str, Any]) -> BaseModel:
    if isinstance(payload, schema):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_unset=True)
    return schema.model_validate(payload)
