# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Custom exceptions for the backend API transport.

This module defines the exception hierarchy for API calls:
- APIError: Base exception for all backend errors
- NetworkError: Connectivity failures (transient)
- RequestTimeoutError: Requests that exceeded the timeout (transient)
- ValidationError: 4xx responses the caller can fix
- NotFoundError: 404 responses, usually a stale id
- ServerError: 5xx responses (transient)
"""


class APIError(Exception):
    """Base exception for all backend API errors.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code, if a response was received.
        details: Optional dictionary with additional error context.
        transient: Whether retrying the same request may succeed.
    """

    transient: bool = False

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        """Initialize API error.

        Args:
            message: Human-readable error description.
            status_code: HTTP status code, if a response was received.
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with status code."""
        base = self.message
        if self.status_code:
            base = f"[{self.status_code}] {base}"
        if self.details:
            base = f"{base} - Details: {self.details}"
        return base


class NetworkError(APIError):
    """The backend could not be reached."""

    transient = True


class RequestTimeoutError(NetworkError):
    """The backend did not respond within the configured timeout."""


class ValidationError(APIError):
    """The backend rejected the request (4xx).

    Attributes:
        validation_errors: Individual messages reported by the backend.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        validation_errors: list[str] | None = None,
        details: dict | None = None,
    ):
        """Initialize validation error.

        Args:
            message: Human-readable error description.
            status_code: HTTP status code.
            validation_errors: Individual messages reported by the backend.
            details: Optional dictionary with additional error context.
        """
        self.validation_errors = validation_errors or []
        super().__init__(message, status_code, details)


class NotFoundError(APIError):
    """The requested entity does not exist (404)."""


class ServerError(APIError):
    """The backend failed to process the request (5xx)."""

    transient = True
