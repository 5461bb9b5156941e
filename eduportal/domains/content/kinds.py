# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content kinds and their handler table.

Every kind-specific difference (table, author column, ordering,
publish semantics, create-time derivations) lives in one ContentSpec,
so ContentService never switches on table names.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel
from sqlalchemy import ColumnElement
from sqlalchemy.orm import InstrumentedAttribute

from eduportal.domains.content.grading import calculate_grade, percentage
from eduportal.domains.content.schemas import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
    EventCreate,
    EventResponse,
    EventUpdate,
    ExamResultCreate,
    ExamResultResponse,
    ExamResultUpdate,
    NewsCreate,
    NewsResponse,
    NewsUpdate,
)
from eduportal.infrastructure.database.models import (
    Announcement,
    Base,
    Event,
    ExamResult,
    ExamStatus,
    News,
)
from eduportal.utils.datetime import utc_now


class ContentKind(str, Enum):
    """Content kinds, valued by their table name."""

    NEWS = "news"
    ANNOUNCEMENT = "announcements"
    EVENT = "events"
    EXAM_RESULT = "exam_results"


@dataclass(frozen=True)
class ContentSpec:
    """Everything the content service needs to know about one kind.

    Attributes:
        kind: The content kind.
        model: Mapped table class.
        author_column: Column set from the authenticated identity on create.
        order_by: Default listing order.
        create_schema: Accepted create payload.
        update_schema: Accepted update payload.
        response_schema: Serialized form.
        published_filter: Builds the WHERE clause for the "published" filter;
            None when the kind has no notion of publication.
        type_column: Column the "type" filter applies to, if any.
        publish_values: Column values written by publish; None when the
            kind cannot be published.
        prepare: Fills derived columns before insert.
        revise: Fills derived columns of an update from the stored row and
            the changed values.
        published_check: Tells whether a row is published; None when the
            kind has no notion of publication.
        notify_on_create: Run the publish notification when an item is
            created already published.
    """

    kind: ContentKind
    model: type[Base]
    author_column: str
    order_by: tuple[ColumnElement, ...]
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    response_schema: type[BaseModel]
    published_filter: Callable[[bool], ColumnElement[bool]] | None = None
    type_column: str | None = None
    publish_values: Callable[[], dict[str, Any]] | None = None
    prepare: Callable[[dict[str, Any]], dict[str, Any]] | None = None
    revise: Callable[[Any, dict[str, Any]], dict[str, Any]] | None = None
    published_check: Callable[[Any], bool] | None = None
    notify_on_create: bool = False

    @property
    def table(self) -> str:
        return self.model.__tablename__

    @property
    def publishable(self) -> bool:
        return self.publish_values is not None

    @property
    def author(self) -> InstrumentedAttribute:
        return getattr(self.model, self.author_column)

    def is_published(self, row: Any) -> bool:
        return self.published_check is not None and bool(self.published_check(row))


def _derive_marks(values: dict[str, Any], marks: float, total: float) -> None:
    if not values.get("grade"):
        values["grade"] = calculate_grade(marks, total)
    if values.get("score") is None:
        values["score"] = round(percentage(marks, total), 2)


def _prepare_exam_result(values: dict[str, Any]) -> dict[str, Any]:
    _derive_marks(values, values["marks_obtained"], values["total_marks"])
    if values.get("status") == ExamStatus.PUBLISHED and values.get("published_at") is None:
        values["published_at"] = utc_now()
    return values


def _revise_exam_result(row: ExamResult, values: dict[str, Any]) -> dict[str, Any]:
    if values.get("marks_obtained") is not None or values.get("total_marks") is not None:
        marks = values.get("marks_obtained")
        total = values.get("total_marks")
        _derive_marks(
            values,
            row.marks_obtained if marks is None else marks,
            row.total_marks if total is None else total,
        )
    if values.get("status") == ExamStatus.PUBLISHED and row.published_at is None:
        values["published_at"] = utc_now()
    return values


def _published_exam_results(published: bool) -> ColumnElement[bool]:
    if published:
        return ExamResult.status == ExamStatus.PUBLISHED
    return ExamResult.status != ExamStatus.PUBLISHED


CONTENT_KINDS: dict[ContentKind, ContentSpec] = {
    ContentKind.NEWS: ContentSpec(
        kind=ContentKind.NEWS,
        model=News,
        author_column="author_id",
        order_by=(News.created_at.desc(),),
        create_schema=NewsCreate,
        update_schema=NewsUpdate,
        response_schema=NewsResponse,
        published_filter=lambda published: News.published == published,
        published_check=lambda row: row.published,
        publish_values=lambda: {"published": True},
    ),
    ContentKind.ANNOUNCEMENT: ContentSpec(
        kind=ContentKind.ANNOUNCEMENT,
        model=Announcement,
        author_column="author_id",
        order_by=(Announcement.created_at.desc(),),
        create_schema=AnnouncementCreate,
        update_schema=AnnouncementUpdate,
        response_schema=AnnouncementResponse,
        published_filter=lambda published: Announcement.published == published,
        published_check=lambda row: row.published,
        type_column="type",
        publish_values=lambda: {"published": True},
        notify_on_create=True,
    ),
    ContentKind.EVENT: ContentSpec(
        kind=ContentKind.EVENT,
        model=Event,
        author_column="organizer_id",
        order_by=(Event.event_date.asc(),),
        create_schema=EventCreate,
        update_schema=EventUpdate,
        response_schema=EventResponse,
    ),
    ContentKind.EXAM_RESULT: ContentSpec(
        kind=ContentKind.EXAM_RESULT,
        model=ExamResult,
        author_column="teacher_id",
        order_by=(ExamResult.exam_date.desc(),),
        create_schema=ExamResultCreate,
        update_schema=ExamResultUpdate,
        response_schema=ExamResultResponse,
        published_filter=_published_exam_results,
        publish_values=lambda: {
            "status": ExamStatus.PUBLISHED,
            "published_at": utc_now(),
        },
        prepare=_prepare_exam_result,
        revise=_revise_exam_result,
        published_check=lambda row: row.status == ExamStatus.PUBLISHED,
        notify_on_create=True,
    ),
}


def get_spec(kind: ContentKind | str) -> ContentSpec:
    """Look up the handler for a kind.

    Raises:
        ValueError: If kind is not a known content kind.
    """
    return CONTENT_KINDS[ContentKind(kind)]
