"""Typed failures raised by the comment and like services.

Every failure carries a terse message, a machine-readable code and the HTTP
status the boundary layer renders it with.
"""
from fastapi import status


class CommunityError(Exception):
    """Base error for the community services."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"
    default_code: str = "internal"

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        super().__init__(self.message)


class NotFoundError(CommunityError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"
    default_code = "not_found"


class UnauthorizedError(CommunityError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"
    default_code = "unauthorized"


class ForbiddenError(CommunityError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Permission denied"
    default_code = "forbidden"


class InvalidInputError(CommunityError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"
    default_code = "bad_input"


class InvalidStateError(CommunityError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Invalid state"
    default_code = "invalid_state"


class ConflictError(CommunityError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"
    default_code = "conflict"


class StoreUnavailableError(CommunityError):
    """The backing store failed mid-operation; the whole operation was rolled back."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Storage temporarily unavailable, please retry"
    default_code = "unavailable"
