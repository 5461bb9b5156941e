# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Realtime WebSocket endpoint.

    WS /api/v1/realtime/ws?token=<jwt>&channel=<name>

Streams change events for one channel as JSON objects:

    {"event_id": "...", "table": "news", "eventType": "INSERT",
     "new": {...}, "old": {}, "commit_timestamp": "..."}

Channels: announcements, news, events, content_updates, notifications
(own), exam_results (own, or entered by the teacher), profile (own)
and admin_updates (admins only).

Each connection gets its own channel registry over the shared change
feed, so two clients on the same channel do not replace each other.
A connection that falls more than MAX_PENDING_CHANGES events behind is
closed with 1008.
"""

import asyncio
import logging
from typing import Callable

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from eduportal.domains.auth.identity import CurrentUser
from eduportal.domains.auth.jwt import JWTError
from eduportal.domains.realtime import RealtimeService, RealtimeSubscription
from eduportal.infrastructure.realtime import ChangeEvent, ChangeHandler

logger = logging.getLogger(__name__)

router = APIRouter()

Opener = Callable[[RealtimeService, CurrentUser, ChangeHandler], RealtimeSubscription]


def _exam_results(
    registry: RealtimeService,
    user: CurrentUser,
    callback: ChangeHandler,
) -> RealtimeSubscription:
    if user.is_student:
        return registry.subscribe_student_exam_results(user.id, callback)
    return registry.subscribe_teacher_exam_results(user.id, callback)


CHANNELS: dict[str, Opener] = {
    "announcements": lambda r, u, cb: r.subscribe_announcements(cb),
    "news": lambda r, u, cb: r.subscribe_news(cb),
    "events": lambda r, u, cb: r.subscribe_events(cb),
    "content_updates": lambda r, u, cb: r.subscribe_content_updates(cb),
    "notifications": lambda r, u, cb: r.subscribe_user_notifications(u.id, cb),
    "exam_results": _exam_results,
    "profile": lambda r, u, cb: r.subscribe_profile_updates(u.id, cb),
    "admin_updates": lambda r, u, cb: r.subscribe_admin_updates(cb),
}

ADMIN_CHANNELS = frozenset({"admin_updates"})

MAX_PENDING_CHANGES = 256


class ChangeForwarder:
    """Feed callback that buffers changes for one connection.

    The buffer is bounded. When a client stops reading and it fills up,
    further changes are dropped and overflowed is set so the connection
    can be closed.
    """

    def __init__(self, maxsize: int = MAX_PENDING_CHANGES) -> None:
        self.queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=maxsize)
        self.overflowed = asyncio.Event()

    async def __call__(self, change: ChangeEvent) -> None:
        try:
            self.queue.put_nowait(change)
        except asyncio.QueueFull:
            self.overflowed.set()


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    token: str = Query(...),
    channel: str = Query(...),
) -> None:
    container = getattr(websocket.app.state, "container", None)
    if container is None:
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason="Services not initialized")
        return

    try:
        user = CurrentUser.from_payload(container.jwt.decode_token(token))
    except JWTError as e:
        logger.debug("Rejected realtime connection: %s", str(e))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return

    opener = CHANNELS.get(channel)
    if opener is None or (channel in ADMIN_CHANNELS and not user.is_admin):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Unknown channel")
        return

    forward = ChangeForwarder()
    registry = RealtimeService(container.feed, container.settings)
    handle = opener(registry, user, forward)
    if not handle.active:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason="Realtime updates disabled")
        return

    await websocket.accept()
    logger.info("Realtime channel %s opened for %s", handle.name, user.id)

    async def send_changes() -> None:
        while True:
            change = await forward.queue.get()
            await websocket.send_json(change.to_dict())

    async def wait_for_close() -> None:
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass

    sender = asyncio.create_task(send_changes())
    receiver = asyncio.create_task(wait_for_close())
    overflow = asyncio.create_task(forward.overflowed.wait())
    try:
        done, pending = await asyncio.wait(
            {sender, receiver, overflow},
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.warning(
                    "Realtime channel %s closed with error: %s",
                    handle.name,
                    str(task.exception()),
                )
        if overflow in done:
            logger.warning("Realtime channel %s fell behind, closing for %s", handle.name, user.id)
            await websocket.close(
                code=status.WS_1008_POLICY_VIOLATION,
                reason="Client not reading updates",
            )
    finally:
        registry.unsubscribe_all()
        logger.info("Realtime channel %s closed for %s", handle.name, user.id)
