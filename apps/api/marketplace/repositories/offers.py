"""Offer persistence helpers."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.offer import Offer, OfferStatus


async def get_by_id(session: AsyncSession, offer_id: str) -> Offer | None:
    return await session.get(Offer, offer_id)


async def find_for_offerer(session: AsyncSession, *, property_id: str, offerer_id: str) -> Offer | None:
    """Return an existing offer of ``offerer_id`` for the property, in any status."""

    stmt = select(Offer).where(Offer.property_id == property_id, Offer.offerer_id == offerer_id).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create(session: AsyncSession, **fields: Any) -> Offer:
    offer = Offer(status=OfferStatus.PENDING, **fields)
    session.add(offer)
    await session.flush()
    return offer


async def update_status(session: AsyncSession, offer_id: str, status: OfferStatus, *, updated_at: datetime) -> None:
    """Write the status column of a single offer."""

    await session.execute(
        update(Offer).where(Offer.id == offer_id).values(status=status, updated_at=updated_at)
    )


async def list_for_properties(session: AsyncSession, property_ids: Iterable[str]) -> list[Offer]:
    ids = list(property_ids)
    if not ids:
        return []
    stmt = select(Offer).where(Offer.property_id.in_(ids)).order_by(Offer.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_for_offerer(session: AsyncSession, offerer_id: str) -> list[Offer]:
    stmt = select(Offer).where(Offer.offerer_id == offerer_id).order_by(Offer.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())
