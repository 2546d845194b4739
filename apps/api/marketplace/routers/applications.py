"""Rental application, review workflow and messaging endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.auth import SessionContext, get_session_context
from ..db.session import get_session, get_session_factory
from ..schemas import applications as applications_schema
from ..schemas import messages as messages_schema
from ..schemas.workflow import TransitionResponse, UndoRequest
from ..services import applications as applications_service
from ..services import messages as messages_service
from ..services.webhook import BestEffortNotifier, get_notifier

router = APIRouter()


@router.post(
    "/applications",
    response_model=applications_schema.ApplicationOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_application(
    payload: applications_schema.ApplicationCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> applications_schema.ApplicationOut:
    return await applications_service.submit_application(payload, ctx, session)


@router.get("/applications", response_model=applications_schema.ApplicationDashboard)
async def application_dashboard(
    ctx: SessionContext = Depends(get_session_context),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> applications_schema.ApplicationDashboard:
    """Applications received on the caller's properties and those the caller sent."""

    return await applications_service.dashboard(ctx, session_factory)


@router.get("/applications/{application_id}", response_model=applications_schema.ApplicationDetail)
async def get_application(
    application_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> applications_schema.ApplicationDetail:
    return await applications_service.get_application_detail(application_id, ctx, session)


@router.post("/applications/{application_id}/approve", response_model=TransitionResponse)
async def approve_application(
    application_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    notifier: BestEffortNotifier = Depends(get_notifier),
) -> TransitionResponse:
    return await applications_service.approve_application(application_id, ctx, session, notifier)


@router.post("/applications/{application_id}/reject", response_model=TransitionResponse)
async def reject_application(
    application_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    notifier: BestEffortNotifier = Depends(get_notifier),
) -> TransitionResponse:
    return await applications_service.reject_application(application_id, ctx, session, notifier)


@router.post("/applications/{application_id}/undo", response_model=TransitionResponse)
async def undo_approval(
    application_id: str,
    payload: UndoRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> TransitionResponse:
    """Return an approved application to pending. Requires ``{"confirm": true}``."""

    return await applications_service.undo_approval(
        application_id, ctx, session, confirm=payload.confirm
    )


@router.get("/applications/{application_id}/audit", response_model=list[applications_schema.AuditEntryOut])
async def list_audit_entries(
    application_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> list[applications_schema.AuditEntryOut]:
    return await applications_service.list_audit_entries(application_id, ctx, session)


@router.post(
    "/applications/{application_id}/guarantors",
    response_model=applications_schema.GuarantorOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_guarantor(
    application_id: str,
    payload: applications_schema.GuarantorCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> applications_schema.GuarantorOut:
    return await applications_service.add_guarantor(application_id, payload, ctx, session)


@router.post(
    "/applications/{application_id}/messages",
    response_model=messages_schema.MessageOut,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    application_id: str,
    payload: messages_schema.MessageCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> messages_schema.MessageOut:
    return await messages_service.send_message(application_id, payload, ctx, session)


@router.get("/applications/{application_id}/messages", response_model=list[messages_schema.MessageOut])
async def list_messages(
    application_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> list[messages_schema.MessageOut]:
    return await messages_service.list_messages(application_id, ctx, session)
