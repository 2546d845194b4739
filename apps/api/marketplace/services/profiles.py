"""Profile operations for the calling user."""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext
from ..core.errors import NotFoundError, translate_backend_errors
from ..repositories import profiles as profiles_repo
from ..schemas import profiles as schemas


async def get_profile(ctx: SessionContext, session: AsyncSession) -> schemas.ProfileOut:
    profile = await profiles_repo.get_by_id(session, ctx.user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return schemas.ProfileOut.model_validate(profile)


async def upsert_profile(
    payload: schemas.ProfileUpsertRequest,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.ProfileOut:
    """Create or update the caller's own profile."""

    fields = payload.model_dump(exclude_unset=True)
    fields.setdefault("email", ctx.email)
    async with translate_backend_errors("Saving profile"):
        async with session.begin():
            profile = await profiles_repo.upsert(session, ctx.user_id, **fields)
    return schemas.ProfileOut.model_validate(profile)
