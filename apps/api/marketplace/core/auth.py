"""Request-scoped session context.

Authentication happens at the gateway in front of the API; it forwards the
authenticated user through identity headers which are read here and handed to
services as an explicit :class:`SessionContext`.
"""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from .config import settings
from .errors import UnauthenticatedError


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Identity of the caller for the lifetime of one request."""

    user_id: str
    email: str | None = None


def _context_from_headers(request: Request) -> SessionContext | None:
    user_id = (request.headers.get(settings.auth_user_header) or "").strip()
    if not user_id:
        return None
    email = (request.headers.get(settings.auth_email_header) or "").strip() or None
    return SessionContext(user_id=user_id, email=email)


async def get_session_context(request: Request) -> SessionContext:
    """FastAPI dependency requiring an authenticated caller."""

    context = _context_from_headers(request)
    if context is None:
        raise UnauthenticatedError("Authentication required")
    return context


async def optional_session_context(request: Request) -> SessionContext | None:
    """FastAPI dependency for routes open to anonymous visitors."""

    return _context_from_headers(request)
