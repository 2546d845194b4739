"""Visit requests against a property's availability."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext
from ..core.errors import InvalidStateError, NotFoundError, ValidationFailedError, translate_backend_errors
from ..models.visit import VisitRequest, VisitStatus
from ..repositories import visits as visits_repo
from ..schemas import availability as schemas
from .availability import selectable_time_slots
from .guards import require_owner, require_property

logger = logging.getLogger(__name__)

_DECISION_SOURCES = {
    VisitStatus.CONFIRMED: frozenset({VisitStatus.PENDING}),
    VisitStatus.CANCELLED: frozenset({VisitStatus.PENDING, VisitStatus.CONFIRMED}),
}


async def request_visit(
    property_id: str,
    payload: schemas.VisitCreateRequest,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.VisitOut:
    """Ask for a visit in one of the hours still selectable on that day."""

    if payload.requested_date < datetime.now(timezone.utc).date():
        raise ValidationFailedError("Visit date is in the past")

    async with translate_backend_errors("Requesting visit"):
        async with session.begin():
            await require_property(session, property_id)
            selectable = await selectable_time_slots(property_id, payload.requested_date, session)
            if payload.requested_time_slot not in {slot.id for slot in selectable.slots}:
                raise InvalidStateError("Time slot no longer available")

            visit = await visits_repo.create(
                session,
                property_id=property_id,
                user_id=ctx.user_id,
                requested_date=payload.requested_date,
                requested_time_slot=payload.requested_time_slot,
                message=payload.message,
            )

    logger.info(
        "Visit %s requested for %s on %s %s",
        visit.id,
        property_id,
        payload.requested_date,
        payload.requested_time_slot,
    )
    return schemas.VisitOut.model_validate(visit)


async def list_visits(
    property_id: str,
    ctx: SessionContext,
    session: AsyncSession,
    *,
    status: VisitStatus | None = None,
) -> list[schemas.VisitOut]:
    prop = await require_property(session, property_id)
    require_owner(prop, ctx)
    rows = await visits_repo.list_for_property(session, property_id, status=status)
    return [schemas.VisitOut.model_validate(row) for row in rows]


async def _decide(visit_id: str, target: VisitStatus, ctx: SessionContext, session: AsyncSession) -> VisitRequest:
    async with translate_backend_errors("Updating visit"):
        async with session.begin():
            visit = await visits_repo.get_by_id(session, visit_id)
            if visit is None:
                raise NotFoundError("Visit not found")
            prop = await require_property(session, visit.property_id)
            require_owner(prop, ctx)

            if visit.status not in _DECISION_SOURCES[target]:
                raise InvalidStateError(f"Visit is already {visit.status.value}")
            if target is VisitStatus.CONFIRMED:
                taken = await visits_repo.confirmed_time_slots(
                    session, property_id=visit.property_id, day=visit.requested_date
                )
                if visit.requested_time_slot in taken:
                    raise InvalidStateError("Another visit already holds this time slot")

            visit.status = target
            session.add(visit)

    logger.info("Visit %s %s by %s", visit.id, target.value, ctx.user_id)
    return visit


async def confirm_visit(visit_id: str, ctx: SessionContext, session: AsyncSession) -> schemas.VisitOut:
    visit = await _decide(visit_id, VisitStatus.CONFIRMED, ctx, session)
    return schemas.VisitOut.model_validate(visit)


async def cancel_visit(visit_id: str, ctx: SessionContext, session: AsyncSession) -> schemas.VisitOut:
    visit = await _decide(visit_id, VisitStatus.CANCELLED, ctx, session)
    return schemas.VisitOut.model_validate(visit)
