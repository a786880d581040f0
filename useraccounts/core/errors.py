"""Typed failures raised by the user account service.

Each carries the HTTP status the transport layer renders it with.
"""

from fastapi import status


class ApiError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.status_code}, {self.message!r})"


class InvalidInput(ApiError):
    """Malformed name, email, password, role or id."""
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(ApiError):
    """Email already registered to a different account."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class Infrastructure(ApiError):
    """Storage or hashing backend unavailable."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
