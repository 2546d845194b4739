"""Application document persistence helpers."""
from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.document import ApplicationDocument, DocumentStatus


async def get_by_id(session: AsyncSession, document_id: str) -> ApplicationDocument | None:
    return await session.get(ApplicationDocument, document_id)


async def list_for_application(session: AsyncSession, application_id: str) -> list[ApplicationDocument]:
    """Documents of every applicant and guarantor of the application, oldest first."""

    stmt = (
        select(ApplicationDocument)
        .where(ApplicationDocument.application_id == application_id)
        .order_by(ApplicationDocument.uploaded_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create(session: AsyncSession, **fields: Any) -> ApplicationDocument:
    document = ApplicationDocument(status=DocumentStatus.UPLOADED, **fields)
    session.add(document)
    await session.flush()
    return document


async def delete(session: AsyncSession, document: ApplicationDocument) -> None:
    await session.delete(document)
    await session.flush()
