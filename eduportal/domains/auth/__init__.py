# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication: token validation and current-user identity."""

from eduportal.domains.auth.identity import (
    ContextIdentityProvider,
    CurrentUser,
    IdentityProvider,
    StaticIdentityProvider,
    reset_current_user,
    set_current_user,
)
from eduportal.domains.auth.jwt import (
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)

__all__ = [
    "ContextIdentityProvider",
    "CurrentUser",
    "IdentityProvider",
    "InvalidTokenError",
    "JWTError",
    "JWTManager",
    "StaticIdentityProvider",
    "TokenExpiredError",
    "TokenPayload",
    "reset_current_user",
    "set_current_user",
]
