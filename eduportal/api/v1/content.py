# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content API endpoints.

This module provides endpoints for school content:
- GET /stats - Dashboard counters
- GET /exam_results/student/{student_id} - A student's exam results
- POST /events/{event_id}/remind - Send an event reminder
- GET /{kind} - List news, announcements, events or exam results
- POST /{kind} - Create an item
- GET /{kind}/{content_id} - Get an item
- PATCH /{kind}/{content_id} - Update an item
- DELETE /{kind}/{content_id} - Delete an item
- POST /{kind}/{content_id}/publish - Publish and notify

Reads require authentication; writes require a teacher or admin.
Students only see their own published exam results.
"""

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, HTTPException, Query, Response, status
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError

from eduportal.api.dependencies import (
    AuthenticatedUser,
    ContentServiceDep,
    TeacherOrAdmin,
)
from eduportal.domains.auth.identity import CurrentUser
from eduportal.domains.content.kinds import ContentKind, ContentSpec, get_spec
from eduportal.domains.content.schemas import ContentFilters, ContentStats
from eduportal.domains.notification.schemas import BulkResult
from eduportal.infrastructure.database.models import AnnouncementType, ExamStatus

logger = logging.getLogger(__name__)

router = APIRouter()


def _serialize(spec: ContentSpec, row: Any) -> dict[str, Any]:
    return spec.response_schema.model_validate(row).model_dump(mode="json")


def _parse(schema: type[BaseModel], payload: dict[str, Any]) -> BaseModel:
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=jsonable_encoder(e.errors(include_url=False, include_context=False)),
        )


def _visible_to(user: CurrentUser, kind: ContentKind, row: Any) -> bool:
    if kind != ContentKind.EXAM_RESULT or not user.is_student:
        return True
    return row.student_id == user.id and row.status == ExamStatus.PUBLISHED


@router.get(
    "/stats",
    response_model=ContentStats,
    summary="Content statistics",
    description="Dashboard counters. Requires teacher or admin access.",
)
async def get_stats(
    service: ContentServiceDep,
    current_user: TeacherOrAdmin,
) -> ContentStats:
    return await service.stats()


@router.get(
    "/exam_results/student/{student_id}",
    summary="Student exam results",
    description="A student's exam results, most recent exam first.",
)
async def list_student_exam_results(
    student_id: UUID,
    service: ContentServiceDep,
    current_user: AuthenticatedUser,
) -> list[dict[str, Any]]:
    """List a student's exam results.

    Students may only read their own, and only published ones.

    Raises:
        HTTPException: If a student asks for someone else's results.
    """
    if current_user.is_student and current_user.id != student_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Students can only view their own exam results",
        )

    rows = await service.list_student_exam_results(
        student_id,
        published_only=current_user.is_student,
    )
    spec = get_spec(ContentKind.EXAM_RESULT)
    return [_serialize(spec, row) for row in rows]


@router.post(
    "/events/{event_id}/remind",
    response_model=BulkResult,
    summary="Send event reminder",
    description="Notify every student and teacher about an event.",
)
async def remind_event(
    event_id: UUID,
    service: ContentServiceDep,
    current_user: TeacherOrAdmin,
) -> BulkResult:
    if await service.get(ContentKind.EVENT, event_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    logger.info("Event reminder for %s requested by %s", event_id, current_user.id)
    return await service.remind_event(event_id)


@router.get(
    "/{kind}",
    summary="List content",
    description="List items of one content kind with optional filters.",
)
async def list_content(
    kind: ContentKind,
    service: ContentServiceDep,
    current_user: AuthenticatedUser,
    published: Annotated[bool | None, Query()] = None,
    author_id: Annotated[UUID | None, Query()] = None,
    type: Annotated[AnnouncementType | None, Query()] = None,
    limit: Annotated[int | None, Query(ge=1, le=200)] = None,
    offset: Annotated[int | None, Query(ge=0)] = None,
) -> list[dict[str, Any]]:
    spec = get_spec(kind)

    if kind == ContentKind.EXAM_RESULT and current_user.is_student:
        rows = await service.list_student_exam_results(current_user.id, published_only=True)
        return [_serialize(spec, row) for row in rows]

    filters = ContentFilters(
        published=published,
        author_id=author_id,
        type=type,
        limit=limit,
        offset=offset,
    )
    rows = await service.list(kind, filters)
    return [_serialize(spec, row) for row in rows]


@router.post(
    "/{kind}",
    status_code=status.HTTP_201_CREATED,
    summary="Create content",
    description="Create an item authored by the current user. Requires teacher or admin access.",
)
async def create_content(
    kind: ContentKind,
    service: ContentServiceDep,
    current_user: TeacherOrAdmin,
    payload: Annotated[dict[str, Any], Body()],
) -> dict[str, Any]:
    spec = get_spec(kind)
    data = _parse(spec.create_schema, payload)

    row = await service.create(kind, data)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to create {kind.value}",
        )
    return _serialize(spec, row)


@router.get(
    "/{kind}/{content_id}",
    summary="Get content",
)
async def get_content(
    kind: ContentKind,
    content_id: UUID,
    service: ContentServiceDep,
    current_user: AuthenticatedUser,
) -> dict[str, Any]:
    row = await service.get(kind, content_id)
    if row is None or not _visible_to(current_user, kind, row):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return _serialize(get_spec(kind), row)


@router.patch(
    "/{kind}/{content_id}",
    summary="Update content",
    description="Apply a partial update. Requires teacher or admin access.",
)
async def update_content(
    kind: ContentKind,
    content_id: UUID,
    service: ContentServiceDep,
    current_user: TeacherOrAdmin,
    payload: Annotated[dict[str, Any], Body()],
) -> dict[str, Any]:
    spec = get_spec(kind)
    data = _parse(spec.update_schema, payload)

    row = await service.update(kind, content_id, data)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return _serialize(spec, row)


@router.delete(
    "/{kind}/{content_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete content",
)
async def delete_content(
    kind: ContentKind,
    content_id: UUID,
    service: ContentServiceDep,
    current_user: TeacherOrAdmin,
) -> Response:
    if not await service.delete(kind, content_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{kind}/{content_id}/publish",
    summary="Publish content",
    description=(
        "Publish news, an announcement or an exam result. Announcements are "
        "sent to every student and teacher; exam results to their student."
    ),
)
async def publish_content(
    kind: ContentKind,
    content_id: UUID,
    service: ContentServiceDep,
    current_user: TeacherOrAdmin,
) -> dict[str, Any]:
    spec = get_spec(kind)
    if not spec.publishable:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{kind.value} cannot be published",
        )

    if not await service.publish(kind, content_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    logger.info("%s %s published by %s", kind.value, content_id, current_user.id)
    return {"success": True}
