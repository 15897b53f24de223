from .errors import (
    BadRequestError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    IntakeError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)

__all__ = [
    'BadRequestError', 'ConflictError', 'ExpiredError', 'ForbiddenError',
    'IntakeError', 'InternalError', 'NotFoundError', 'UnauthorizedError',
    'ValidationFailedError',
]
