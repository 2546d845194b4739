"""Rental application operations and the owner's review workflow."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.auth import SessionContext
from ..core.errors import ConflictError, PermissionDeniedError, ValidationFailedError, translate_backend_errors
from ..models.application import Application, ApplicationStatus
from ..models.base import utcnow
from ..models.property import Property
from ..repositories import applications as applications_repo
from ..repositories import audit as audit_repo
from ..repositories import profiles as profiles_repo
from ..repositories import properties as properties_repo
from ..schemas import applications as schemas
from ..schemas import profiles as profile_schemas
from ..schemas import properties as property_schemas
from ..schemas.workflow import TransitionResponse
from . import workflow
from .guards import require_application, require_owner, require_participant, require_property
from .webhook import BestEffortNotifier, NotificationEvent

logger = logging.getLogger(__name__)

_EVENTS: dict[str, NotificationEvent] = {
    "approve": NotificationEvent.APPLICATION_APPROVED,
    "reject": NotificationEvent.APPLICATION_REJECTED,
}


async def submit_application(
    payload: schemas.ApplicationCreateRequest,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.ApplicationOut:
    """Create a pending application unless the caller already applied.

    The duplicate check is a query before the insert, so two simultaneous
    submissions can still both succeed.
    """

    message = payload.message.strip()
    if len(message) < schemas.MIN_MESSAGE_LENGTH:
        raise ValidationFailedError(
            f"The message must be at least {schemas.MIN_MESSAGE_LENGTH} characters long"
        )

    async with translate_backend_errors("Submitting application"):
        async with session.begin():
            prop = await require_property(session, payload.property_id)
            if prop.owner_id == ctx.user_id:
                raise PermissionDeniedError("Owners cannot apply to their own property")

            existing = await applications_repo.find_for_applicant(
                session, property_id=prop.id, applicant_id=ctx.user_id
            )
            if existing is not None:
                raise ConflictError("You have already applied to this property")

            first_name = None
            last_name = None
            if payload.full_name:
                first_name, _, last_name = payload.full_name.strip().partition(" ")
            profile = await profiles_repo.upsert(
                session,
                ctx.user_id,
                first_name=first_name or None,
                paternal_last_name=last_name or None,
                email=ctx.email,
                phone=payload.contact_phone,
            )

            application = await applications_repo.create(
                session,
                property_id=prop.id,
                applicant_id=ctx.user_id,
                message=message,
                **_snapshot(profile),
            )

    logger.info("Application %s submitted for property %s", application.id, prop.id)
    return schemas.ApplicationOut.model_validate(application)


def _snapshot(profile: Any) -> dict[str, Any]:
    address = " ".join(
        part for part in (profile.address_street, profile.address_number) if part
    )
    if profile.address_commune:
        address = f"{address}, {profile.address_commune}" if address else profile.address_commune
    return {
        "snapshot_applicant_profession": profile.profession,
        "snapshot_applicant_monthly_income": profile.monthly_income,
        "snapshot_applicant_age": profile.age,
        "snapshot_applicant_nationality": profile.nationality,
        "snapshot_applicant_marital_status": profile.marital_status,
        "snapshot_applicant_address": address or None,
    }


async def list_received(ctx: SessionContext, session: AsyncSession) -> list[Application]:
    """Applications on properties owned by the caller."""

    property_ids = await properties_repo.ids_owned_by(session, ctx.user_id)
    return await applications_repo.list_for_properties(session, property_ids)


async def list_sent(ctx: SessionContext, session: AsyncSession) -> list[Application]:
    return await applications_repo.list_for_applicant(session, ctx.user_id)


async def dashboard(
    ctx: SessionContext,
    session_factory: async_sessionmaker[AsyncSession],
) -> schemas.ApplicationDashboard:
    """Fetch received and sent applications concurrently, one session each."""

    async def _run(loader):
        async with session_factory() as session:
            return await loader(ctx, session)

    received, sent = await asyncio.gather(_run(list_received), _run(list_sent))
    return schemas.ApplicationDashboard(
        received=[schemas.ApplicationOut.model_validate(row) for row in received],
        sent=[schemas.ApplicationOut.model_validate(row) for row in sent],
    )


async def get_application_detail(
    application_id: str,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.ApplicationDetail:
    application = await require_application(session, application_id)
    prop = await require_property(session, application.property_id)
    require_participant(application, prop, ctx)

    applicant = await profiles_repo.get_by_id(session, application.applicant_id)
    guarantors = await applications_repo.list_guarantors(session, application.id)
    actions = (
        workflow.allowed_actions(workflow.APPLICATION_RULES, application.status)
        if prop.owner_id == ctx.user_id
        else []
    )

    return schemas.ApplicationDetail(
        application=schemas.ApplicationOut.model_validate(application),
        property=property_schemas.PropertyOut.model_validate(prop),
        applicant=profile_schemas.ProfileOut.model_validate(applicant) if applicant else None,
        guarantors=[schemas.GuarantorOut.model_validate(row) for row in guarantors],
        allowed_actions=actions,
    )


async def approve_application(
    application_id: str,
    ctx: SessionContext,
    session: AsyncSession,
    notifier: BestEffortNotifier,
) -> TransitionResponse:
    """``pending -> approved``; notifies the automation service once committed."""

    return await _transition(application_id, "approve", ctx, session, notifier)


async def reject_application(
    application_id: str,
    ctx: SessionContext,
    session: AsyncSession,
    notifier: BestEffortNotifier,
) -> TransitionResponse:
    """``pending -> rejected``. Rejected applications have no way back."""

    return await _transition(application_id, "reject", ctx, session, notifier)


async def undo_approval(
    application_id: str,
    ctx: SessionContext,
    session: AsyncSession,
    *,
    confirm: bool,
) -> TransitionResponse:
    """``approved -> pending``, only after explicit confirmation."""

    return await _transition(application_id, "undo", ctx, session, None, confirm=confirm)


async def _transition(
    application_id: str,
    action: str,
    ctx: SessionContext,
    session: AsyncSession,
    notifier: BestEffortNotifier | None,
    *,
    confirm: bool = False,
) -> TransitionResponse:
    rule = workflow.APPLICATION_RULES[action]

    async with session.begin():
        application = await require_application(session, application_id)
        prop = await require_property(session, application.property_id)
        require_owner(prop, ctx)

        now = utcnow()

        async def persist(status: ApplicationStatus) -> None:
            async with translate_backend_errors(f"Updating application to {status.value}"):
                await applications_repo.update_status(
                    session,
                    application.id,
                    status,
                    updated_at=now,
                    approved_at=now if status is ApplicationStatus.APPROVED else None,
                )

        change = await workflow.run_transition(rule, application, persist, confirmed=confirm)
        await _audit(session, application, prop, ctx, action, change)

        people: dict[str, Any] = {}
        if notifier is not None and action in _EVENTS:
            people = await profiles_repo.get_many(session, [application.applicant_id, prop.owner_id])

    logger.info(
        "Application %s moved %s -> %s by %s",
        application.id,
        change.previous.value,
        change.proposed.value,
        ctx.user_id,
    )

    if notifier is not None and action in _EVENTS:
        await notifier.notify(
            _EVENTS[action],
            application=application,
            property=prop,
            applicant=people.get(application.applicant_id),
            owner=people.get(prop.owner_id),
        )

    return TransitionResponse(
        id=application.id,
        action=action,
        previous_status=change.previous.value,
        status=change.proposed.value,
        phase=change.phase.value,
    )


async def _audit(
    session: AsyncSession,
    application: Application,
    prop: Property,
    ctx: SessionContext,
    action: str,
    change: workflow.StatusChange,
) -> None:
    """Record the transition; a failed audit write never undoes the status change."""

    try:
        async with session.begin_nested():
            await audit_repo.record(
                session,
                application_id=application.id,
                property_id=prop.id,
                user_id=ctx.user_id,
                action_type=action,
                previous_status=change.previous.value,
                new_status=change.proposed.value,
                details={"phase": change.phase.value},
            )
    except Exception as exc:  # noqa: BLE001 - audit is secondary to the status change
        logger.error("Could not record audit entry for %s: %s", application.id, exc)


async def list_audit_entries(
    application_id: str,
    ctx: SessionContext,
    session: AsyncSession,
) -> list[schemas.AuditEntryOut]:
    application = await require_application(session, application_id)
    prop = await require_property(session, application.property_id)
    require_participant(application, prop, ctx)
    entries = await audit_repo.list_for_application(session, application.id)
    return [schemas.AuditEntryOut.model_validate(entry) for entry in entries]


async def add_guarantor(
    application_id: str,
    payload: schemas.GuarantorCreateRequest,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.GuarantorOut:
    """Attach a guarantor; only the applicant may do so."""

    async with translate_backend_errors("Adding guarantor"):
        async with session.begin():
            application = await require_application(session, application_id)
            if application.applicant_id != ctx.user_id:
                raise PermissionDeniedError("Only the applicant can add guarantors")
            guarantor = await applications_repo.add_guarantor(
                session, application_id=application.id, **payload.model_dump()
            )
    return schemas.GuarantorOut.model_validate(guarantor)
