"""Lookup-or-raise helpers shared by the services."""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext
from ..core.errors import NotFoundError, PermissionDeniedError
from ..models.application import Application
from ..models.property import Property
from ..repositories import applications as applications_repo
from ..repositories import properties as properties_repo


async def require_property(session: AsyncSession, property_id: str) -> Property:
    prop = await properties_repo.get_by_id(session, property_id)
    if prop is None:
        raise NotFoundError("Property not found")
    return prop


async def require_application(session: AsyncSession, application_id: str) -> Application:
    application = await applications_repo.get_by_id(session, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    return application


def require_owner(prop: Property, ctx: SessionContext) -> None:
    if prop.owner_id != ctx.user_id:
        raise PermissionDeniedError("Only the property owner can do this")


def require_participant(application: Application, prop: Property, ctx: SessionContext) -> None:
    """Allow the property owner and the applicant."""

    if ctx.user_id not in {prop.owner_id, application.applicant_id}:
        raise PermissionDeniedError("Not a participant of this application")
