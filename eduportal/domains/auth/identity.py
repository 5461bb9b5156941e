# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Current-user identity.

The auth middleware stores the authenticated user in a context
variable for the duration of a request. Services ask an
IdentityProvider for it rather than reading request state, so they
work the same from HTTP handlers, WebSocket handlers and scripts.
"""

from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from eduportal.domains.auth.jwt import TokenPayload
from eduportal.infrastructure.database.models import UserRole


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated user.

    Attributes:
        id: Auth user UUID.
        role: Portal role.
        email: Email address, if known.
    """

    id: UUID
    role: str
    email: str | None = None

    @classmethod
    def from_payload(cls, payload: TokenPayload) -> "CurrentUser":
        return cls(id=payload.sub, role=payload.role, email=payload.email)

    def has_any_role(self, *roles: str) -> bool:
        return self.role in roles

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER.value

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value


_current_user: ContextVar[CurrentUser | None] = ContextVar("current_user", default=None)


def set_current_user(user: CurrentUser | None) -> Token:
    """Bind the current user to this context; returns a reset token."""
    return _current_user.set(user)


def reset_current_user(token: Token) -> None:
    _current_user.reset(token)


class IdentityProvider(Protocol):
    """Source of the authenticated user for service calls."""

    def current(self) -> CurrentUser | None: ...


class ContextIdentityProvider:
    """Reads the user bound by the auth middleware."""

    def current(self) -> CurrentUser | None:
        return _current_user.get()


class StaticIdentityProvider:
    """Always returns the same user (or nobody). For scripts and tests."""

    def __init__(self, user: CurrentUser | None) -> None:
        self._user = user

    def current(self) -> CurrentUser | None:
        return self._user
