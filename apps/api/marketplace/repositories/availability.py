"""Availability repository helpers."""
from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.availability import AvailabilitySlot
from ..models.base import utcnow


async def list_for_property(
    session: AsyncSession,
    *,
    property_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[AvailabilitySlot]:
    """Return availability rows for a property between the provided dates inclusive."""

    stmt = select(AvailabilitySlot).where(AvailabilitySlot.property_id == property_id)
    if start_date is not None:
        stmt = stmt.where(AvailabilitySlot.slot_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(AvailabilitySlot.slot_date <= end_date)
    stmt = stmt.order_by(AvailabilitySlot.slot_date.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_single_day(session: AsyncSession, *, property_id: str, day: date) -> AvailabilitySlot | None:
    """Return the availability entry for a specific day if it exists."""

    return await session.get(AvailabilitySlot, (property_id, day))


async def save_day(
    session: AsyncSession,
    *,
    property_id: str,
    day: date,
    time_slots: list[str],
    created_by: str,
) -> AvailabilitySlot:
    """Create or replace the hour tokens for one day."""

    slot = await session.get(AvailabilitySlot, (property_id, day))
    if slot is None:
        slot = AvailabilitySlot(property_id=property_id, slot_date=day, created_by=created_by)
    slot.time_slots = list(time_slots)
    slot.updated_at = utcnow()
    session.add(slot)
    await session.flush()
    return slot


async def delete_day(session: AsyncSession, slot: AvailabilitySlot) -> None:
    await session.delete(slot)
    await session.flush()
