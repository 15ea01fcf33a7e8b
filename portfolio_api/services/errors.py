"""
Error taxonomy shared by the services and the security layer.

Every error carries the HTTP status it maps to at the application boundary
and a short, generic message. Nothing about rule evaluation (conditions,
ordering) is ever placed in a message.
"""

from __future__ import annotations

from fastapi import status


class ApiError(Exception):
    """Base class for errors that map 1:1 to an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(ApiError):
    """Caller attempted a structurally disallowed operation."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(ApiError):
    """Missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Please authenticate"


class AuthorizationError(ApiError):
    """Action forbidden by the principal's ability rules."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(ApiError):
    """Resource id has no backing record."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"
