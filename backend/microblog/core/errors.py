"""
Error types raised by the services.

- MicroblogError: Base exception
- ValidationError: Malformed or disallowed input
- AuthError: Bad login credentials
- AuthUnresolved: Bearer token missing, invalid or revoked
- Forbidden: Authenticated but not allowed to touch the resource
- NotFound: Resource absent
- InternalError: Unexpected store/runtime failure

Each error carries the HTTP status it is answered with; the handlers in
microblog.main only ever send `message` to the client.
"""
from __future__ import annotations

from typing import Optional


class MicroblogError(Exception):
    """Base exception for all service errors.

    Attributes:
        message: Client-safe error message
        code: Error code for programmatic handling
        status_code: HTTP status used when the error reaches a route
    """

    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "MICROBLOG_ERROR"


class ValidationError(MicroblogError):
    """Input rejected before any write was attempted."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class AuthError(MicroblogError):
    """Login failed. The message never says whether username or password was wrong."""

    status_code = 400

    def __init__(self, message: str = "Unable to login") -> None:
        super().__init__(message, code="AUTH_INVALID_CREDENTIALS")


class AuthUnresolved(MicroblogError):
    """Bearer token could not be resolved to a live session."""

    status_code = 401

    def __init__(self, message: str = "Authorization Failed") -> None:
        super().__init__(message, code="AUTH_UNRESOLVED")


class NotFound(MicroblogError):
    status_code = 404

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found", code="NOT_FOUND")
        self.resource = resource


class Forbidden(NotFound):
    """Ownership check failed.

    Answered exactly like NotFound for the same resource so that callers cannot
    check for the existence of other users' content.
    """

    def __init__(self, resource: str) -> None:
        super().__init__(resource)
        self.code = "FORBIDDEN"


class InternalError(MicroblogError):
    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message, code="INTERNAL_ERROR")
