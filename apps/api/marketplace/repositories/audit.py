"""Application audit log helpers."""
from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.audit import ApplicationAuditEntry


async def record(
    session: AsyncSession,
    *,
    application_id: str,
    property_id: str,
    user_id: str,
    action_type: str,
    previous_status: str | None,
    new_status: str | None,
    details: dict[str, Any] | None = None,
    notes: str | None = None,
) -> ApplicationAuditEntry:
    entry = ApplicationAuditEntry(
        application_id=application_id,
        property_id=property_id,
        user_id=user_id,
        action_type=action_type,
        previous_status=previous_status,
        new_status=new_status,
        details=details or {},
        notes=notes,
    )
    session.add(entry)
    await session.flush()
    return entry


async def list_for_application(session: AsyncSession, application_id: str) -> list[ApplicationAuditEntry]:
    """Audit entries of an application, newest first."""

    stmt = (
        select(ApplicationAuditEntry)
        .where(ApplicationAuditEntry.application_id == application_id)
        .order_by(ApplicationAuditEntry.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
