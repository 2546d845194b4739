"""Purchase offers on listings for sale."""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.auth import SessionContext
from ..core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError, translate_backend_errors
from ..models.base import utcnow
from ..models.offer import Offer, OfferStatus
from ..models.property import ListingType
from ..repositories import offers as offers_repo
from ..repositories import profiles as profiles_repo
from ..repositories import properties as properties_repo
from ..schemas import offers as schemas
from ..schemas.workflow import TransitionResponse
from . import workflow
from .guards import require_owner, require_property
from .webhook import BestEffortNotifier, NotificationEvent

logger = logging.getLogger(__name__)

_EVENTS = {
    "accept": NotificationEvent.OFFER_ACCEPTED,
    "reject": NotificationEvent.OFFER_REJECTED,
}


async def submit_offer(
    payload: schemas.OfferCreateRequest,
    ctx: SessionContext,
    session: AsyncSession,
    notifier: BestEffortNotifier,
) -> schemas.OfferOut:
    async with translate_backend_errors("Submitting offer"):
        async with session.begin():
            prop = await require_property(session, payload.property_id)
            if prop.listing_type is not ListingType.SALE:
                raise ValidationFailedError("Offers can only be made on properties for sale")
            if prop.owner_id == ctx.user_id:
                raise PermissionDeniedError("Owners cannot make offers on their own property")

            existing = await offers_repo.find_for_offerer(
                session, property_id=prop.id, offerer_id=ctx.user_id
            )
            if existing is not None:
                raise ConflictError("You have already made an offer on this property")

            await profiles_repo.upsert(session, ctx.user_id, email=ctx.email)
            offer = await offers_repo.create(
                session,
                property_id=prop.id,
                offerer_id=ctx.user_id,
                amount=payload.amount,
                message=payload.message,
            )
            people = await profiles_repo.get_many(session, [ctx.user_id, prop.owner_id])

    logger.info("Offer %s of %s submitted for property %s", offer.id, offer.amount, prop.id)
    await notifier.notify(
        NotificationEvent.OFFER_RECEIVED,
        offer=offer,
        property=prop,
        offerer=people.get(ctx.user_id),
        owner=people.get(prop.owner_id),
    )
    return schemas.OfferOut.model_validate(offer)


async def _received(ctx: SessionContext, session: AsyncSession) -> list[Offer]:
    property_ids = await properties_repo.ids_owned_by(session, ctx.user_id)
    return await offers_repo.list_for_properties(session, property_ids)


async def _sent(ctx: SessionContext, session: AsyncSession) -> list[Offer]:
    return await offers_repo.list_for_offerer(session, ctx.user_id)


async def dashboard(
    ctx: SessionContext,
    session_factory: async_sessionmaker[AsyncSession],
) -> schemas.OfferDashboard:
    async def _run(loader):
        async with session_factory() as session:
            return await loader(ctx, session)

    received, sent = await asyncio.gather(_run(_received), _run(_sent))
    return schemas.OfferDashboard(
        received=[schemas.OfferOut.model_validate(row) for row in received],
        sent=[schemas.OfferOut.model_validate(row) for row in sent],
    )


async def accept_offer(
    offer_id: str,
    ctx: SessionContext,
    session: AsyncSession,
    notifier: BestEffortNotifier,
) -> TransitionResponse:
    return await _transition(offer_id, "accept", ctx, session, notifier)


async def reject_offer(
    offer_id: str,
    ctx: SessionContext,
    session: AsyncSession,
    notifier: BestEffortNotifier,
) -> TransitionResponse:
    return await _transition(offer_id, "reject", ctx, session, notifier)


async def _transition(
    offer_id: str,
    action: str,
    ctx: SessionContext,
    session: AsyncSession,
    notifier: BestEffortNotifier,
) -> TransitionResponse:
    rule = workflow.OFFER_RULES[action]

    async with session.begin():
        offer = await offers_repo.get_by_id(session, offer_id)
        if offer is None:
            raise NotFoundError("Offer not found")
        prop = await require_property(session, offer.property_id)
        require_owner(prop, ctx)

        async def persist(status: OfferStatus) -> None:
            async with translate_backend_errors(f"Updating offer to {status.value}"):
                await offers_repo.update_status(session, offer.id, status, updated_at=utcnow())

        change = await workflow.run_transition(rule, offer, persist)
        people = await profiles_repo.get_many(session, [offer.offerer_id, prop.owner_id])

    logger.info("Offer %s moved %s -> %s", offer.id, change.previous.value, change.proposed.value)
    await notifier.notify(
        _EVENTS[action],
        offer=offer,
        property=prop,
        offerer=people.get(offer.offerer_id),
        owner=people.get(prop.owner_id),
    )
    return TransitionResponse(
        id=offer.id,
        action=action,
        previous_status=change.previous.value,
        status=change.proposed.value,
        phase=change.phase.value,
    )
