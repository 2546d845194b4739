"""Messages between a property owner and an applicant."""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext
from ..core.errors import ValidationFailedError, translate_backend_errors
from ..models.base import utcnow
from ..repositories import messages as messages_repo
from ..schemas import messages as schemas
from .guards import require_application, require_participant, require_property


async def send_message(
    application_id: str,
    payload: schemas.MessageCreateRequest,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.MessageOut:
    """Send ``payload`` to the other participant of the application."""

    body = payload.body.strip()
    if not body:
        raise ValidationFailedError("Message body cannot be blank")

    async with translate_backend_errors("Sending message"):
        async with session.begin():
            application = await require_application(session, application_id)
            prop = await require_property(session, application.property_id)
            require_participant(application, prop, ctx)

            recipient = application.applicant_id if ctx.user_id == prop.owner_id else prop.owner_id
            message = await messages_repo.create(
                session,
                application_id=application.id,
                sender_id=ctx.user_id,
                recipient_id=recipient,
                body=body,
            )
    return schemas.MessageOut.model_validate(message)


async def list_messages(
    application_id: str,
    ctx: SessionContext,
    session: AsyncSession,
) -> list[schemas.MessageOut]:
    """Conversation in chronological order; marks messages to the caller as read."""

    async with session.begin():
        application = await require_application(session, application_id)
        prop = await require_property(session, application.property_id)
        require_participant(application, prop, ctx)

        rows = await messages_repo.list_for_application(session, application.id)
        await messages_repo.mark_read(
            session, application_id=application.id, recipient_id=ctx.user_id, read_at=utcnow()
        )
    return [schemas.MessageOut.model_validate(row) for row in rows]
