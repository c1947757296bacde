"""
Error taxonomy shared by the authorization layer.
Every error is an HTTPException so FastAPI can render it; main.py turns it into
{"status": "failed", "message": ...}.
"""

from fastapi import HTTPException, status
from typing import Optional


class AppError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(status_code=type(self).status_code, detail=message or type(self).message)


class TokenNotProvided(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "You are not logged in, please provide a token"


class InvalidToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication token is invalid or expired"


class UserNoLongerExists(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "User belonging to this token no longer exists"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class PermissionDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "You are not allowed to perform this action"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Resource already exists"


class BadRequest(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"


class ServerError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"


# PostgreSQL error codes surfaced by PostgREST
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def store_error(exc: Exception, conflict_message: str = "Resource already exists") -> AppError:
    """Translate a store failure into the taxonomy: constraint violations become Conflict, the rest ServerError."""
    if isinstance(exc, AppError):
        return exc
    code = getattr(exc, "code", None)
    if code in (UNIQUE_VIOLATION, FOREIGN_KEY_VIOLATION):
        return Conflict(conflict_message)
    return ServerError(str(exc))
