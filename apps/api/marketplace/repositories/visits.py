"""Visit request persistence helpers."""
from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.visit import VisitRequest, VisitStatus


async def get_by_id(session: AsyncSession, visit_id: str) -> VisitRequest | None:
    return await session.get(VisitRequest, visit_id)


async def create(session: AsyncSession, **fields: Any) -> VisitRequest:
    visit = VisitRequest(status=VisitStatus.PENDING, **fields)
    session.add(visit)
    await session.flush()
    return visit


async def list_for_property(
    session: AsyncSession, property_id: str, *, status: VisitStatus | None = None
) -> list[VisitRequest]:
    stmt = select(VisitRequest).where(VisitRequest.property_id == property_id)
    if status is not None:
        stmt = stmt.where(VisitRequest.status == status)
    stmt = stmt.order_by(VisitRequest.requested_date.asc(), VisitRequest.requested_time_slot.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def confirmed_time_slots(session: AsyncSession, *, property_id: str, day: date) -> set[str]:
    """Hour tokens already taken by confirmed visits on ``day``."""

    stmt = select(VisitRequest.requested_time_slot).where(
        VisitRequest.property_id == property_id,
        VisitRequest.requested_date == day,
        VisitRequest.status == VisitStatus.CONFIRMED,
    )
    result = await session.execute(stmt)
    return set(result.scalars().all())
