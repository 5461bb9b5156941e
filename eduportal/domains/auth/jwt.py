# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token validation using python-jose.

Access tokens are issued by the platform's auth service. EduPortal
verifies them; create_access_token exists for tooling and tests.

Example:
    >>> from eduportal.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token(user_id=uid, role="teacher")
    >>> claims = jwt_manager.decode_token(token)
"""

import logging
import secrets
from datetime import timedelta
from uuid import UUID

from jose import ExpiredSignatureError, jwt
from pydantic import BaseModel, ValidationError

from eduportal.core.config.settings import JWTSettings
from eduportal.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT access token claims.

    Attributes:
        sub: Subject (auth user ID).
        role: Portal role (student, teacher, admin).
        email: User email, when the issuer includes it.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID for token tracking.
    """

    sub: UUID
    role: str = "student"
    email: str | None = None
    exp: int
    iat: int
    jti: str | None = None


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT token validation manager.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    def create_access_token(
        self,
        user_id: str | UUID,
        role: str,
        email: str | None = None,
    ) -> str:
        """Create a signed access token.

        Args:
            user_id: Auth user identifier.
            role: Portal role.
            email: Optional email claim.

        Returns:
            JWT access token string.
        """
        now = utc_now()
        exp = now + timedelta(minutes=self._settings.access_token_expire_minutes)

        payload = {
            "sub": str(user_id),
            "role": role,
            "email": email,
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate a JWT token.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the signature or claims are invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
            return TokenPayload.model_validate(payload)

        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except ValidationError as e:
            logger.warning("Token claims invalid: %s", str(e))
            raise InvalidTokenError("Invalid token claims")
        except Exception as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

    def verify_token(self, token: str) -> bool:
        """Verify if a token is valid."""
        try:
            self.decode_token(token)
            return True
        except JWTError:
            return False
