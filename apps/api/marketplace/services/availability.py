"""Owner-managed visit availability per property and date."""
from __future__ import annotations

from datetime import date
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext
from ..core.errors import NotFoundError, ValidationFailedError, translate_backend_errors
from ..repositories import availability as availability_repo
from ..repositories import visits as visits_repo
from ..schemas import availability as schemas
from .guards import require_owner, require_property

TIME_SLOT_OPTIONS: tuple[schemas.TimeSlotOption, ...] = tuple(
    schemas.TimeSlotOption(id=f"{hour}-{hour + 1}", label=f"{hour:02d}:00 - {hour + 1:02d}:00")
    for hour in range(9, 20)
)
VALID_TIME_SLOTS: frozenset[str] = frozenset(option.id for option in TIME_SLOT_OPTIONS)
DEFAULT_TIME_SLOTS: tuple[str, ...] = ("10-11", "11-12", "14-15", "15-16")

_ORDER = {option.id: index for index, option in enumerate(TIME_SLOT_OPTIONS)}


def normalize_time_slots(tokens: Iterable[str]) -> list[str]:
    """Deduplicate and order hour tokens, rejecting unknown ones."""

    unique = set(tokens)
    unknown = unique - VALID_TIME_SLOTS
    if unknown:
        raise ValidationFailedError(f"Unknown time slots: {', '.join(sorted(unknown))}")
    return sorted(unique, key=_ORDER.__getitem__)


def _day(row) -> schemas.AvailabilityDayOut:
    return schemas.AvailabilityDayOut(date=row.slot_date, time_slots=list(row.time_slots or []))


async def list_availability(
    property_id: str,
    session: AsyncSession,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> schemas.AvailabilityResponse:
    await require_property(session, property_id)
    rows = await availability_repo.list_for_property(
        session, property_id=property_id, start_date=start_date, end_date=end_date
    )
    return schemas.AvailabilityResponse(property_id=property_id, days=[_day(row) for row in rows])


async def add_date(
    property_id: str,
    day: date,
    ctx: SessionContext,
    session: AsyncSession,
    *,
    time_slots: list[str] | None = None,
) -> schemas.AvailabilityDayOut:
    """Open ``day`` for visits with the default hours, or replace its hours."""

    tokens = normalize_time_slots(DEFAULT_TIME_SLOTS if time_slots is None else time_slots)
    async with translate_backend_errors("Saving availability"):
        async with session.begin():
            prop = await require_property(session, property_id)
            require_owner(prop, ctx)
            row = await availability_repo.save_day(
                session, property_id=property_id, day=day, time_slots=tokens, created_by=ctx.user_id
            )
    return _day(row)


async def remove_date(property_id: str, day: date, ctx: SessionContext, session: AsyncSession) -> None:
    async with translate_backend_errors("Removing availability"):
        async with session.begin():
            prop = await require_property(session, property_id)
            require_owner(prop, ctx)
            row = await availability_repo.get_single_day(session, property_id=property_id, day=day)
            if row is None:
                raise NotFoundError("Date is not available")
            await availability_repo.delete_day(session, row)


async def remove_time_slot(
    property_id: str,
    day: date,
    token: str,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.AvailabilityDayOut:
    normalize_time_slots([token])
    async with translate_backend_errors("Updating availability"):
        async with session.begin():
            prop = await require_property(session, property_id)
            require_owner(prop, ctx)
            row = await availability_repo.get_single_day(session, property_id=property_id, day=day)
            if row is None:
                raise NotFoundError("Date is not available")
            remaining = [slot for slot in row.time_slots or [] if slot != token]
            row = await availability_repo.save_day(
                session, property_id=property_id, day=day, time_slots=remaining, created_by=row.created_by
            )
    return _day(row)


async def clear_date(
    property_id: str,
    day: date,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.AvailabilityDayOut:
    """Keep ``day`` in the calendar with no hours selected."""

    async with translate_backend_errors("Clearing availability"):
        async with session.begin():
            prop = await require_property(session, property_id)
            require_owner(prop, ctx)
            row = await availability_repo.get_single_day(session, property_id=property_id, day=day)
            if row is None:
                raise NotFoundError("Date is not available")
            row = await availability_repo.save_day(
                session, property_id=property_id, day=day, time_slots=[], created_by=row.created_by
            )
    return _day(row)


async def selectable_time_slots(
    property_id: str,
    day: date,
    session: AsyncSession,
) -> schemas.SelectableSlotsResponse:
    """Hours offered on ``day`` that no confirmed visit holds yet."""

    row = await availability_repo.get_single_day(session, property_id=property_id, day=day)
    offered = list(row.time_slots or []) if row is not None else []
    taken = await visits_repo.confirmed_time_slots(session, property_id=property_id, day=day) if offered else set()
    options = {option.id: option for option in TIME_SLOT_OPTIONS}
    return schemas.SelectableSlotsResponse(
        date=day,
        slots=[options[token] for token in offered if token in options and token not in taken],
    )
