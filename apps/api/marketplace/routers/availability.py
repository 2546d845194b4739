"""Availability calendar and visit request endpoints."""
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext, get_session_context
from ..db.session import get_session
from ..models.visit import VisitStatus
from ..schemas import availability as availability_schema
from ..services import availability as availability_service
from ..services import visits as visits_service

router = APIRouter()


@router.get("/properties/{property_id}/availability", response_model=availability_schema.AvailabilityResponse)
async def list_availability(
    property_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
    session: AsyncSession = Depends(get_session),
) -> availability_schema.AvailabilityResponse:
    return await availability_service.list_availability(
        property_id, session, start_date=start_date, end_date=end_date
    )


@router.put("/properties/{property_id}/availability/{day}", response_model=availability_schema.AvailabilityDayOut)
async def put_availability_day(
    property_id: str,
    day: date,
    payload: availability_schema.AvailabilityDayRequest | None = None,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> availability_schema.AvailabilityDayOut:
    """Open a date with the default hours, or set its hours explicitly."""

    return await availability_service.add_date(
        property_id, day, ctx, session, time_slots=payload.time_slots if payload else None
    )


@router.delete("/properties/{property_id}/availability/{day}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_availability_day(
    property_id: str,
    day: date,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> Response:
    await availability_service.remove_date(property_id, day, ctx, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/properties/{property_id}/availability/{day}/clear",
    response_model=availability_schema.AvailabilityDayOut,
)
async def clear_availability_day(
    property_id: str,
    day: date,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> availability_schema.AvailabilityDayOut:
    return await availability_service.clear_date(property_id, day, ctx, session)


@router.delete(
    "/properties/{property_id}/availability/{day}/slots/{token}",
    response_model=availability_schema.AvailabilityDayOut,
)
async def delete_time_slot(
    property_id: str,
    day: date,
    token: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> availability_schema.AvailabilityDayOut:
    return await availability_service.remove_time_slot(property_id, day, token, ctx, session)


@router.get(
    "/properties/{property_id}/availability/{day}/selectable",
    response_model=availability_schema.SelectableSlotsResponse,
)
async def selectable_time_slots(
    property_id: str,
    day: date,
    session: AsyncSession = Depends(get_session),
) -> availability_schema.SelectableSlotsResponse:
    """Hours a visitor can still pick on that day."""

    return await availability_service.selectable_time_slots(property_id, day, session)


@router.post(
    "/properties/{property_id}/visits",
    response_model=availability_schema.VisitOut,
    status_code=status.HTTP_201_CREATED,
)
async def request_visit(
    property_id: str,
    payload: availability_schema.VisitCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> availability_schema.VisitOut:
    return await visits_service.request_visit(property_id, payload, ctx, session)


@router.get("/properties/{property_id}/visits", response_model=list[availability_schema.VisitOut])
async def list_visits(
    property_id: str,
    status_: VisitStatus | None = Query(default=None, alias="status"),
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> list[availability_schema.VisitOut]:
    return await visits_service.list_visits(property_id, ctx, session, status=status_)


@router.post("/visits/{visit_id}/confirm", response_model=availability_schema.VisitOut)
async def confirm_visit(
    visit_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> availability_schema.VisitOut:
    return await visits_service.confirm_visit(visit_id, ctx, session)


@router.post("/visits/{visit_id}/cancel", response_model=availability_schema.VisitOut)
async def cancel_visit(
    visit_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> availability_schema.VisitOut:
    return await visits_service.cancel_visit(visit_id, ctx, session)
