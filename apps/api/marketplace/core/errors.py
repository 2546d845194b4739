"""Error taxonomy shared by repositories, services and routes.

Callers branch on :class:`ErrorKind` instead of inspecting message text.
"""
from __future__ import annotations

import enum
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission_denied"
    CONFLICT = "conflict"
    INVALID_STATE = "invalid_state"
    VALIDATION = "validation"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.VALIDATION: 422,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.UNKNOWN: 500,
}


class MarketplaceError(Exception):
    """Base error carrying a structured kind."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, *, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]


class NotFoundError(MarketplaceError):
    kind = ErrorKind.NOT_FOUND


class UnauthenticatedError(MarketplaceError):
    kind = ErrorKind.UNAUTHENTICATED


class PermissionDeniedError(MarketplaceError):
    kind = ErrorKind.PERMISSION_DENIED


class ConflictError(MarketplaceError):
    kind = ErrorKind.CONFLICT


class InvalidStateError(MarketplaceError):
    """Raised when a status transition is not allowed from the current status."""

    kind = ErrorKind.INVALID_STATE


class ValidationFailedError(MarketplaceError):
    kind = ErrorKind.VALIDATION


class BackendUnavailableError(MarketplaceError):
    kind = ErrorKind.UNAVAILABLE


def classify_backend_error(exc: BaseException) -> ErrorKind:
    """Map a persistence exception onto an error kind."""

    if isinstance(exc, MarketplaceError):
        return exc.kind
    if isinstance(exc, IntegrityError):
        return ErrorKind.CONFLICT
    if isinstance(exc, (OperationalError, InterfaceError)):
        return ErrorKind.UNAVAILABLE
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return ErrorKind.UNAVAILABLE
    return ErrorKind.UNKNOWN


@asynccontextmanager
async def translate_backend_errors(action: str) -> AsyncIterator[None]:
    """Re-raise SQLAlchemy failures as :class:`MarketplaceError`."""

    try:
        yield
    except SQLAlchemyError as exc:
        kind = classify_backend_error(exc)
        raise MarketplaceError(f"{action} failed", kind=kind) from exc
