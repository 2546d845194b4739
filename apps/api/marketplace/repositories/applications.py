"""Application persistence helpers."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.application import Application, ApplicationStatus, Guarantor


async def get_by_id(session: AsyncSession, application_id: str) -> Application | None:
    """Return an application by identifier."""

    return await session.get(Application, application_id)


async def find_for_applicant(
    session: AsyncSession, *, property_id: str, applicant_id: str
) -> Application | None:
    """Return an existing application of ``applicant_id`` for the property, in any status."""

    stmt = (
        select(Application)
        .where(Application.property_id == property_id, Application.applicant_id == applicant_id)
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create(session: AsyncSession, **fields: Any) -> Application:
    """Persist a new pending application."""

    application = Application(status=ApplicationStatus.PENDING, **fields)
    session.add(application)
    await session.flush()
    return application


async def update_status(
    session: AsyncSession,
    application_id: str,
    status: ApplicationStatus,
    *,
    updated_at: datetime,
    approved_at: datetime | None = None,
) -> None:
    """Write the status column of a single application."""

    values: dict[str, Any] = {"status": status, "updated_at": updated_at}
    if approved_at is not None:
        values["approved_at"] = approved_at
    await session.execute(update(Application).where(Application.id == application_id).values(**values))


async def list_for_properties(session: AsyncSession, property_ids: Iterable[str]) -> list[Application]:
    """Applications received on the given properties, newest first."""

    ids = list(property_ids)
    if not ids:
        return []
    stmt = (
        select(Application)
        .where(Application.property_id.in_(ids))
        .order_by(Application.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_for_applicant(session: AsyncSession, applicant_id: str) -> list[Application]:
    """Applications sent by ``applicant_id``, newest first."""

    stmt = (
        select(Application)
        .where(Application.applicant_id == applicant_id)
        .order_by(Application.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def add_guarantor(session: AsyncSession, *, application_id: str, **fields: Any) -> Guarantor:
    guarantor = Guarantor(application_id=application_id, **fields)
    session.add(guarantor)
    await session.flush()
    return guarantor


async def list_guarantors(session: AsyncSession, application_id: str) -> list[Guarantor]:
    stmt = select(Guarantor).where(Guarantor.application_id == application_id).order_by(Guarantor.created_at)
    result = await session.execute(stmt)
    return list(result.scalars().all())
