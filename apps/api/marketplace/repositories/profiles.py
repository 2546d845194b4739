"""Profile persistence helpers."""
from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import utcnow
from ..models.profile import Profile


async def get_by_id(session: AsyncSession, profile_id: str) -> Profile | None:
    """Return a profile by identifier."""

    return await session.get(Profile, profile_id)


async def get_many(session: AsyncSession, profile_ids: Iterable[str]) -> dict[str, Profile]:
    """Return profiles keyed by id for the given identifiers."""

    ids = {profile_id for profile_id in profile_ids if profile_id}
    if not ids:
        return {}
    result = await session.execute(select(Profile).where(Profile.id.in_(ids)))
    return {profile.id: profile for profile in result.scalars().all()}


async def upsert(session: AsyncSession, profile_id: str, **fields: Any) -> Profile:
    """Create the profile or update the provided non-null fields."""

    profile = await session.get(Profile, profile_id)
    if profile is None:
        profile = Profile(id=profile_id)
    for name, value in fields.items():
        if value is not None:
            setattr(profile, name, value)
    profile.updated_at = utcnow()
    session.add(profile)
    await session.flush()
    return profile
