"""Profile endpoints for the calling user."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext, get_session_context
from ..db.session import get_session
from ..schemas import profiles as profiles_schema
from ..services import profiles as profiles_service

router = APIRouter()


@router.get("/profiles/me", response_model=profiles_schema.ProfileOut)
async def get_my_profile(
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> profiles_schema.ProfileOut:
    return await profiles_service.get_profile(ctx, session)


@router.put("/profiles/me", response_model=profiles_schema.ProfileOut)
async def put_my_profile(
    payload: profiles_schema.ProfileUpsertRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> profiles_schema.ProfileOut:
    """Create or update the caller's profile."""

    return await profiles_service.upsert_profile(payload, ctx, session)
