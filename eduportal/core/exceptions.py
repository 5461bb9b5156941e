# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy for EduPortal.

This module defines the exception hierarchy shared by services and
transports:
- EduPortalError: Base exception for all EduPortal errors
- AuthRequiredError: An operation needs an authenticated identity
- ValidationFailure: Input rejected before any side effect
- TransportFailure: An SMS or email provider rejected or was unreachable
- QueryFailure: A data-store read or write failed

Services catch these at their boundary, log them and return an empty,
zero or false result. AuthRequiredError is the one error that reaches
callers.
"""


class EduPortalError(Exception):
    """Base exception for all EduPortal errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        """Initialize the error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class AuthRequiredError(EduPortalError):
    """Raised when an operation requires an authenticated user."""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class ValidationFailure(EduPortalError):
    """Raised when input is malformed, e.g. an invalid phone number."""

    pass


class TransportFailure(EduPortalError):
    """Error from an outbound delivery provider.

    Attributes:
        provider: Provider name (twilio, resend, smtp).
        status_code: HTTP status code from the provider, if any.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message, details)

    def __str__(self) -> str:
        """Return string representation with provider and status code."""
        base = f"{self.provider}: {self.message}"
        if self.status_code:
            base = f"[{self.status_code}] {base}"
        return base


class QueryFailure(EduPortalError):
    """Raised when a data-store query fails or returns nothing usable."""

    pass
