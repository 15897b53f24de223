from typing import Any, Optional

from fastapi import status


class IntakeError(Exception):
    """Base domain error, rendered as {"error": message, **details}."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, **self.details}


class BadRequestError(IntakeError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(IntakeError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(IntakeError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(IntakeError):
    """Entity absent, or owned by another organization."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(IntakeError):
    status_code = status.HTTP_409_CONFLICT


class ExpiredError(IntakeError):
    status_code = status.HTTP_410_GONE


class ValidationFailedError(IntakeError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, issues: list[dict[str, Any]]):
        super().__init__(message, {"details": issues})
        self.issues = issues


class InternalError(IntakeError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def is_unique_violation(exc: Exception) -> bool:
    """True when an IntegrityError comes from a unique constraint."""
    orig = getattr(exc, "orig", exc)
    if getattr(orig, "pgcode", None) == "23505":
        return True
    message = str(orig).lower()
    return "unique" in message or "duplicate" in message


def is_identifier(value: Any) -> bool:
    """True for an int id taken from a JSON body. Booleans are rejected."""
    return isinstance(value, int) and not isinstance(value, bool)
