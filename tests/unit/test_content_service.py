# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the content service."""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from eduportal.core.exceptions import AuthRequiredError
from eduportal.domains.auth.identity import CurrentUser, StaticIdentityProvider
from eduportal.domains.content import (
    AnnouncementCreate,
    ContentFilters,
    ContentKind,
    ContentService,
    ExamResultCreate,
    ExamResultUpdate,
    NewsCreate,
    NewsUpdate,
)
from eduportal.domains.notification.schemas import BulkResult
from eduportal.infrastructure.database.models import (
    Announcement,
    AnnouncementType,
    Event,
    ExamResult,
    ExamStatus,
    News,
)
from eduportal.infrastructure.realtime import ChangeEvent, ChangeFeed

NOW = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def teacher() -> CurrentUser:
    return CurrentUser(id=uuid4(), role="teacher", email="teacher@example.com")


@pytest.fixture
def mock_notifications() -> MagicMock:
    notifications = MagicMock()
    notifications.send_announcement_notification = AsyncMock(return_value=BulkResult())
    notifications.send_exam_result_notification = AsyncMock(return_value=True)
    notifications.send_event_reminder_notification = AsyncMock(return_value=BulkResult())
    return notifications


@pytest.fixture
def service(session_factory, mock_notifications, feed: ChangeFeed, teacher: CurrentUser):
    return ContentService(
        session_factory,
        mock_notifications,
        feed,
        StaticIdentityProvider(teacher),
    )


@pytest.fixture
def changes(feed: ChangeFeed) -> list[ChangeEvent]:
    received: list[ChangeEvent] = []

    async def record(change: ChangeEvent) -> None:
        received.append(change)

    feed.subscribe("*", record)
    return received


def make_news(**overrides) -> News:
    values = dict(
        id=uuid4(),
        author_id=uuid4(),
        title="Annual Day",
        content="Annual day celebrations on Friday.",
        published=False,
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    return News(**values)


def make_announcement(**overrides) -> Announcement:
    values = dict(
        id=uuid4(),
        author_id=uuid4(),
        title="Holiday",
        content="School closed on Monday.",
        type=AnnouncementType.GENERAL,
        priority=1,
        published=False,
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    return Announcement(**values)


def make_exam_result(**overrides) -> ExamResult:
    values = dict(
        id=uuid4(),
        student_id=uuid4(),
        teacher_id=uuid4(),
        exam_name="Mid Term",
        subject="Mathematics",
        exam_date=date(2025, 3, 1),
        marks_obtained=42.0,
        total_marks=50.0,
        grade=None,
        score=84.0,
        status=ExamStatus.PENDING,
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    return ExamResult(**values)


def make_event(**overrides) -> Event:
    values = dict(
        id=uuid4(),
        organizer_id=uuid4(),
        title="Science Fair",
        description=None,
        event_date=datetime(2025, 3, 21, 10, 0, tzinfo=timezone.utc),
        location="Main Hall",
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    return Event(**values)


class TestCreate:
    """Tests for ContentService.create."""

    @pytest.mark.asyncio
    async def test_requires_identity(
        self,
        session_factory,
        mock_notifications,
        feed: ChangeFeed,
        mock_session: AsyncMock,
    ) -> None:
        service = ContentService(session_factory, mock_notifications, feed, StaticIdentityProvider(None))

        with pytest.raises(AuthRequiredError):
            await service.create(ContentKind.NEWS, NewsCreate(title="t", content="c"))

        mock_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_sets_author(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        teacher: CurrentUser,
        changes: list[ChangeEvent],
    ) -> None:
        news = await service.create(ContentKind.NEWS, NewsCreate(title="Annual Day", content="Friday"))

        assert news is not None
        assert news.author_id == teacher.id
        mock_session.add.assert_called_once_with(news)
        assert changes[0].table == "news"
        assert changes[0].event_type.value == "INSERT"
        assert changes[0].new["author_id"] == str(teacher.id)

    @pytest.mark.asyncio
    async def test_accepts_plain_dict(self, service: ContentService, teacher: CurrentUser) -> None:
        event = await service.create(
            "events",
            {"title": "Sports Day", "event_date": "2025-04-01T09:00:00+00:00"},
        )

        assert event.organizer_id == teacher.id
        assert event.title == "Sports Day"

    @pytest.mark.asyncio
    async def test_exam_result_derives_grade(
        self,
        service: ContentService,
        teacher: CurrentUser,
    ) -> None:
        result = await service.create(
            ContentKind.EXAM_RESULT,
            ExamResultCreate(
                student_id=uuid4(),
                exam_name="Unit Test 1",
                subject="Science",
                exam_date=date(2025, 2, 10),
                marks_obtained=45,
                total_marks=50,
            ),
        )

        assert result.teacher_id == teacher.id
        assert result.grade == "A+"
        assert result.score == 90.0
        assert result.status == ExamStatus.DRAFT

    @pytest.mark.asyncio
    async def test_exam_result_keeps_given_grade(self, service: ContentService) -> None:
        result = await service.create(
            ContentKind.EXAM_RESULT,
            ExamResultCreate(
                student_id=uuid4(),
                exam_name="Unit Test 1",
                subject="Science",
                exam_date=date(2025, 2, 10),
                marks_obtained=10,
                total_marks=50,
                grade="B",
            ),
        )

        assert result.grade == "B"

    @pytest.mark.asyncio
    async def test_draft_exam_result_is_not_sent(
        self,
        service: ContentService,
        mock_notifications: MagicMock,
    ) -> None:
        result = await service.create(
            ContentKind.EXAM_RESULT,
            ExamResultCreate(
                student_id=uuid4(),
                exam_name="Unit Test 1",
                subject="Science",
                exam_date=date(2025, 2, 10),
                marks_obtained=45,
                total_marks=50,
            ),
        )

        assert result.published_at is None
        mock_notifications.send_exam_result_notification.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_published_exam_result_is_sent(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        mock_notifications: MagicMock,
        make_result,
    ) -> None:
        """Test that an exam result created published is stamped and sent to its student."""
        student_id = uuid4()
        mock_session.execute.return_value = make_result(scalar="Asha Rao")

        result = await service.create(
            ContentKind.EXAM_RESULT,
            ExamResultCreate(
                student_id=student_id,
                exam_name="Unit Test 1",
                subject="Science",
                exam_date=date(2025, 2, 10),
                marks_obtained=45,
                total_marks=50,
                status=ExamStatus.PUBLISHED,
            ),
        )

        assert result.status == ExamStatus.PUBLISHED
        assert result.published_at is not None
        mock_notifications.send_exam_result_notification.assert_awaited_once_with(
            student_id, "Unit Test 1", "A+", "Asha Rao"
        )

    @pytest.mark.asyncio
    async def test_published_announcement_is_sent(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        mock_notifications: MagicMock,
        make_result,
    ) -> None:
        """Test that creating an already published announcement notifies everyone."""
        audience = [uuid4(), uuid4()]
        mock_session.execute.return_value = make_result(scalars=audience)

        await service.create(
            ContentKind.ANNOUNCEMENT,
            AnnouncementCreate(title="Exam week", content="Starts Monday", published=True),
        )

        mock_notifications.send_announcement_notification.assert_awaited_once_with(
            audience, "Exam week", "Starts Monday"
        )

    @pytest.mark.asyncio
    async def test_draft_announcement_is_not_sent(
        self,
        service: ContentService,
        mock_notifications: MagicMock,
    ) -> None:
        await service.create(
            ContentKind.ANNOUNCEMENT,
            AnnouncementCreate(title="Exam week", content="Starts Monday"),
        )

        mock_notifications.send_announcement_notification.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_returns_none(
        self,
        failing_session_factory,
        mock_notifications,
        feed: ChangeFeed,
        teacher: CurrentUser,
        changes: list[ChangeEvent],
    ) -> None:
        service = ContentService(
            failing_session_factory,
            mock_notifications,
            feed,
            StaticIdentityProvider(teacher),
        )

        assert await service.create(ContentKind.NEWS, NewsCreate(title="t", content="c")) is None
        assert changes == []


class TestPublish:
    """Tests for ContentService.publish."""

    @pytest.mark.asyncio
    async def test_events_cannot_be_published(
        self,
        service: ContentService,
        mock_session: AsyncMock,
    ) -> None:
        assert await service.publish(ContentKind.EVENT, uuid4()) is False
        mock_session.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_row(self, service: ContentService) -> None:
        assert await service.publish(ContentKind.NEWS, uuid4()) is False

    @pytest.mark.asyncio
    async def test_news(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        mock_notifications: MagicMock,
        changes: list[ChangeEvent],
    ) -> None:
        news = make_news()
        mock_session.get.return_value = news

        assert await service.publish(ContentKind.NEWS, news.id) is True
        assert news.published is True
        assert changes[0].old["published"] is False
        assert changes[0].new["published"] is True
        mock_notifications.send_announcement_notification.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_announcement_fans_out_to_audience(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        mock_notifications: MagicMock,
        make_result,
    ) -> None:
        """Test that publishing to N students and teachers sends N notifications."""
        announcement = make_announcement()
        audience = [uuid4() for _ in range(7)]
        mock_session.get.return_value = announcement
        mock_session.execute.return_value = make_result(scalars=audience)
        mock_notifications.send_announcement_notification.return_value = BulkResult(
            success=7, failed=0, total=7
        )

        assert await service.publish(ContentKind.ANNOUNCEMENT, announcement.id) is True

        assert announcement.published is True
        mock_notifications.send_announcement_notification.assert_awaited_once_with(
            audience, "Holiday", "School closed on Monday."
        )

    @pytest.mark.asyncio
    async def test_empty_audience_sends_nothing(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        mock_notifications: MagicMock,
        make_result,
    ) -> None:
        announcement = make_announcement()
        mock_session.get.return_value = announcement
        mock_session.execute.return_value = make_result(scalars=[])

        assert await service.publish(ContentKind.ANNOUNCEMENT, announcement.id) is True
        mock_notifications.send_announcement_notification.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fan_out_failure_keeps_result(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        mock_notifications: MagicMock,
        make_result,
    ) -> None:
        """Test that a failing fan-out does not flip the publish result."""
        announcement = make_announcement()
        mock_session.get.return_value = announcement
        mock_session.execute.return_value = make_result(scalars=[uuid4()])
        mock_notifications.send_announcement_notification.side_effect = RuntimeError("sms down")

        assert await service.publish(ContentKind.ANNOUNCEMENT, announcement.id) is True

    @pytest.mark.asyncio
    async def test_exam_result_notifies_student(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        mock_notifications: MagicMock,
        make_result,
    ) -> None:
        exam = make_exam_result(grade=None)
        mock_session.get.return_value = exam
        mock_session.execute.return_value = make_result(scalar="Asha Rao")

        assert await service.publish(ContentKind.EXAM_RESULT, exam.id) is True

        assert exam.status == ExamStatus.PUBLISHED
        assert exam.published_at is not None
        mock_notifications.send_exam_result_notification.assert_awaited_once_with(
            exam.student_id, "Mid Term", "N/A", "Asha Rao"
        )

    @pytest.mark.asyncio
    async def test_exam_result_unknown_student_name(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        mock_notifications: MagicMock,
        make_result,
    ) -> None:
        exam = make_exam_result(grade="A")
        mock_session.get.return_value = exam
        mock_session.execute.return_value = make_result(scalar=None)

        await service.publish(ContentKind.EXAM_RESULT, exam.id)

        mock_notifications.send_exam_result_notification.assert_awaited_once_with(
            exam.student_id, "Mid Term", "A", None
        )


class TestList:
    """Tests for ContentService.list."""

    @pytest.mark.asyncio
    async def test_returns_rows(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        make_result,
    ) -> None:
        rows = [make_news(), make_news()]
        mock_session.execute.return_value = make_result(scalars=rows)

        assert await service.list(ContentKind.NEWS) == rows

    @pytest.mark.asyncio
    async def test_offset_window(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        make_result,
    ) -> None:
        """Test that an offset without a limit selects ten rows."""
        mock_session.execute.return_value = make_result(scalars=[])

        await service.list(ContentKind.NEWS, ContentFilters(offset=20))

        stmt = mock_session.execute.await_args.args[0]
        assert stmt._offset == 20
        assert stmt._limit == 10

    @pytest.mark.asyncio
    async def test_limit_only(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        make_result,
    ) -> None:
        mock_session.execute.return_value = make_result(scalars=[])

        await service.list(ContentKind.NEWS, ContentFilters(limit=5))

        stmt = mock_session.execute.await_args.args[0]
        assert stmt._limit == 5
        assert stmt._offset is None

    @pytest.mark.asyncio
    async def test_event_order_and_ignored_published(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        make_result,
    ) -> None:
        mock_session.execute.return_value = make_result(scalars=[])

        await service.list(ContentKind.EVENT, ContentFilters(published=True))

        sql = str(mock_session.execute.await_args.args[0])
        assert "ORDER BY events.event_date ASC" in sql
        assert "published" not in sql

    @pytest.mark.asyncio
    async def test_exam_results_published_maps_to_status(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        make_result,
    ) -> None:
        mock_session.execute.return_value = make_result(scalars=[])

        await service.list(ContentKind.EXAM_RESULT, ContentFilters(published=True))

        sql = str(mock_session.execute.await_args.args[0])
        assert "exam_results.status =" in sql
        assert "ORDER BY exam_results.exam_date DESC" in sql

    @pytest.mark.asyncio
    async def test_announcement_type_filter(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        make_result,
    ) -> None:
        mock_session.execute.return_value = make_result(scalars=[])

        await service.list(
            ContentKind.ANNOUNCEMENT,
            ContentFilters(type=AnnouncementType.URGENT, published=True),
        )

        sql = str(mock_session.execute.await_args.args[0])
        assert "announcements.type =" in sql
        assert "announcements.published =" in sql
        assert "ORDER BY announcements.created_at DESC" in sql

    @pytest.mark.asyncio
    async def test_failure_returns_empty(
        self,
        failing_session_factory,
        mock_notifications,
        feed: ChangeFeed,
        teacher: CurrentUser,
    ) -> None:
        service = ContentService(
            failing_session_factory,
            mock_notifications,
            feed,
            StaticIdentityProvider(teacher),
        )

        assert await service.list(ContentKind.NEWS) == []
        assert await service.get(ContentKind.NEWS, uuid4()) is None

    @pytest.mark.asyncio
    async def test_unknown_kind(self, service: ContentService) -> None:
        with pytest.raises(ValueError):
            await service.list("homework")


class TestUpdateDelete:
    """Tests for ContentService.update and delete."""

    @pytest.mark.asyncio
    async def test_update_applies_fields(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        changes: list[ChangeEvent],
    ) -> None:
        news = make_news(title="Old")
        mock_session.get.return_value = news

        updated = await service.update(ContentKind.NEWS, news.id, NewsUpdate(title="New"))

        assert updated is news
        assert news.title == "New"
        assert news.content == "Annual day celebrations on Friday."
        assert changes[0].old["title"] == "Old"
        assert changes[0].new["title"] == "New"

    @pytest.mark.asyncio
    async def test_update_missing(self, service: ContentService) -> None:
        assert await service.update(ContentKind.NEWS, uuid4(), NewsUpdate(title="x")) is None

    @pytest.mark.asyncio
    async def test_update_marks_rederives_grade(
        self,
        service: ContentService,
        mock_session: AsyncMock,
    ) -> None:
        """Test that new marks without a grade replace the stored grade and score."""
        exam = make_exam_result(marks_obtained=45.0, total_marks=50.0, grade="A+", score=90.0)
        mock_session.get.return_value = exam

        await service.update(ContentKind.EXAM_RESULT, exam.id, {"marks_obtained": 10.0})

        assert exam.marks_obtained == 10.0
        assert exam.grade == "F"
        assert exam.score == 20.0

    @pytest.mark.asyncio
    async def test_update_total_uses_stored_marks(
        self,
        service: ContentService,
        mock_session: AsyncMock,
    ) -> None:
        exam = make_exam_result(marks_obtained=45.0, total_marks=50.0, grade="A+", score=90.0)
        mock_session.get.return_value = exam

        await service.update(ContentKind.EXAM_RESULT, exam.id, ExamResultUpdate(total_marks=100))

        assert exam.grade == "C"
        assert exam.score == 45.0

    @pytest.mark.asyncio
    async def test_update_marks_keeps_given_grade(
        self,
        service: ContentService,
        mock_session: AsyncMock,
    ) -> None:
        exam = make_exam_result(marks_obtained=45.0, total_marks=50.0, grade="A+", score=90.0)
        mock_session.get.return_value = exam

        await service.update(
            ContentKind.EXAM_RESULT,
            exam.id,
            ExamResultUpdate(marks_obtained=10, grade="B"),
        )

        assert exam.grade == "B"
        assert exam.score == 20.0

    @pytest.mark.asyncio
    async def test_update_without_marks_leaves_grade(
        self,
        service: ContentService,
        mock_session: AsyncMock,
    ) -> None:
        exam = make_exam_result(grade="A", score=84.0)
        mock_session.get.return_value = exam

        await service.update(ContentKind.EXAM_RESULT, exam.id, ExamResultUpdate(subject="Physics"))

        assert exam.grade == "A"
        assert exam.score == 84.0

    @pytest.mark.asyncio
    async def test_update_status_to_published_stamps_time(
        self,
        service: ContentService,
        mock_session: AsyncMock,
    ) -> None:
        exam = make_exam_result()
        mock_session.get.return_value = exam

        await service.update(
            ContentKind.EXAM_RESULT,
            exam.id,
            ExamResultUpdate(status=ExamStatus.PUBLISHED),
        )

        assert exam.published_at is not None

    @pytest.mark.asyncio
    async def test_delete(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        changes: list[ChangeEvent],
    ) -> None:
        news = make_news()
        mock_session.get.return_value = news

        assert await service.delete(ContentKind.NEWS, news.id) is True
        mock_session.delete.assert_awaited_once_with(news)
        assert changes[0].event_type.value == "DELETE"
        assert changes[0].old["id"] == str(news.id)

    @pytest.mark.asyncio
    async def test_delete_missing(self, service: ContentService, changes: list[ChangeEvent]) -> None:
        assert await service.delete(ContentKind.NEWS, uuid4()) is False
        assert changes == []


class TestStats:
    """Tests for ContentService.stats."""

    @pytest.mark.asyncio
    async def test_counts(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        make_result,
    ) -> None:
        mock_session.execute.return_value = make_result(scalar=3)

        stats = await service.stats()

        assert mock_session.execute.await_count == 7
        assert stats.total_news == 3
        assert stats.pending_exam_results == 3

    @pytest.mark.asyncio
    async def test_any_failure_zeroes_everything(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        make_result,
    ) -> None:
        mock_session.execute.side_effect = [make_result(scalar=5)] * 6 + [RuntimeError("boom")]

        stats = await service.stats()

        assert stats.model_dump() == {
            "total_news": 0,
            "total_announcements": 0,
            "total_events": 0,
            "total_exam_results": 0,
            "published_news": 0,
            "published_announcements": 0,
            "pending_exam_results": 0,
        }


class TestRemindEvent:
    """Tests for ContentService.remind_event."""

    @pytest.mark.asyncio
    async def test_sends_to_audience(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        mock_notifications: MagicMock,
        make_result,
    ) -> None:
        event = make_event()
        audience = [uuid4(), uuid4()]
        mock_session.get.return_value = event
        mock_session.execute.return_value = make_result(scalars=audience)
        mock_notifications.send_event_reminder_notification.return_value = BulkResult(
            success=2, failed=0, total=2
        )

        result = await service.remind_event(event.id)

        assert result.success == 2
        args = mock_notifications.send_event_reminder_notification.await_args.args
        assert args[0] == audience
        assert args[1] == "Science Fair"
        assert args[2] == "Friday, 21 March 2025 at 10:00 AM"
        assert args[3] == "Main Hall"

    @pytest.mark.asyncio
    async def test_missing_event(self, service: ContentService) -> None:
        result = await service.remind_event(uuid4())

        assert (result.success, result.failed, result.total) == (0, 0, 0)


class TestExamResultQueries:
    """Tests for per-student and per-teacher exam result lists."""

    @pytest.mark.asyncio
    async def test_student_published_only(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        make_result,
    ) -> None:
        rows = [make_exam_result()]
        mock_session.execute.return_value = make_result(scalars=rows)

        assert await service.list_student_exam_results(uuid4(), published_only=True) == rows

        sql = str(mock_session.execute.await_args.args[0])
        assert "exam_results.student_id =" in sql
        assert "exam_results.status =" in sql

    @pytest.mark.asyncio
    async def test_teacher(
        self,
        service: ContentService,
        mock_session: AsyncMock,
        make_result,
    ) -> None:
        mock_session.execute.return_value = make_result(scalars=[])

        assert await service.list_teacher_exam_results(uuid4()) == []

        sql = str(mock_session.execute.await_args.args[0])
        assert "exam_results.teacher_id =" in sql
