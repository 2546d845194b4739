"""Application message persistence helpers."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.message import ApplicationMessage


async def create(
    session: AsyncSession, *, application_id: str, sender_id: str, recipient_id: str, body: str
) -> ApplicationMessage:
    message = ApplicationMessage(
        application_id=application_id, sender_id=sender_id, recipient_id=recipient_id, body=body
    )
    session.add(message)
    await session.flush()
    return message


async def list_for_application(session: AsyncSession, application_id: str) -> list[ApplicationMessage]:
    """Messages of an application in chronological order."""

    stmt = (
        select(ApplicationMessage)
        .where(ApplicationMessage.application_id == application_id)
        .order_by(ApplicationMessage.created_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def mark_read(session: AsyncSession, *, application_id: str, recipient_id: str, read_at: datetime) -> None:
    """Stamp unread messages addressed to ``recipient_id`` as read."""

    await session.execute(
        update(ApplicationMessage)
        .where(
            ApplicationMessage.application_id == application_id,
            ApplicationMessage.recipient_id == recipient_id,
            ApplicationMessage.read_at.is_(None),
        )
        .values(read_at=read_at)
    )
