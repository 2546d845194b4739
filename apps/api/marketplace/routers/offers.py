"""Purchase offer endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.auth import SessionContext, get_session_context
from ..db.session import get_session, get_session_factory
from ..schemas import offers as offers_schema
from ..schemas.workflow import TransitionResponse
from ..services import offers as offers_service
from ..services.webhook import BestEffortNotifier, get_notifier

router = APIRouter()


@router.post("/offers", response_model=offers_schema.OfferOut, status_code=status.HTTP_201_CREATED)
async def submit_offer(
    payload: offers_schema.OfferCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    notifier: BestEffortNotifier = Depends(get_notifier),
) -> offers_schema.OfferOut:
    return await offers_service.submit_offer(payload, ctx, session, notifier)


@router.get("/offers", response_model=offers_schema.OfferDashboard)
async def offer_dashboard(
    ctx: SessionContext = Depends(get_session_context),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> offers_schema.OfferDashboard:
    return await offers_service.dashboard(ctx, session_factory)


@router.post("/offers/{offer_id}/accept", response_model=TransitionResponse)
async def accept_offer(
    offer_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    notifier: BestEffortNotifier = Depends(get_notifier),
) -> TransitionResponse:
    return await offers_service.accept_offer(offer_id, ctx, session, notifier)


@router.post("/offers/{offer_id}/reject", response_model=TransitionResponse)
async def reject_offer(
    offer_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    notifier: BestEffortNotifier = Depends(get_notifier),
) -> TransitionResponse:
    return await offers_service.reject_offer(offer_id, ctx, session, notifier)
