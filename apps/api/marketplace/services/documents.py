"""Application documents: upload, review and checklist."""
from __future__ import annotations

import logging
import mimetypes
import re
import time
from dataclasses import dataclass
from pathlib import PurePosixPath

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext
from ..core.errors import NotFoundError, PermissionDeniedError, ValidationFailedError, translate_backend_errors
from ..models.application import Application
from ..models.document import ApplicantType, ApplicationDocument, DocumentStatus
from ..repositories import applications as applications_repo
from ..repositories import documents as documents_repo
from ..repositories import profiles as profiles_repo
from ..schemas import documents as schemas
from .checklist import DOCUMENT_LABELS, build_checklist
from .guards import require_application, require_owner, require_participant, require_property
from .storage import StorageBucket, discard

logger = logging.getLogger(__name__)

MAX_DOCUMENT_BYTES = 10 * 1024 * 1024

_UNSAFE = re.compile(r"[^A-Za-z0-9]+")


def _slug(value: str | None) -> str:
    return _UNSAFE.sub("_", value or "").strip("_") or "x"


def stored_file_name(
    first_name: str | None,
    last_name: str | None,
    label: str,
    original_name: str,
    *,
    millis: int | None = None,
) -> str:
    """``<name>_<last_name>_<label>_<millis>.<ext>`` with unsafe characters replaced."""

    stamp = millis if millis is not None else int(time.time() * 1000)
    extension = PurePosixPath(original_name).suffix.lstrip(".").lower() or "bin"
    return f"{_slug(first_name)}_{_slug(last_name)}_{_slug(label)}_{stamp}.{_slug(extension)}"


@dataclass(slots=True)
class DownloadedDocument:
    file_name: str
    media_type: str
    content: bytes


async def _resolve_applicant(
    session: AsyncSession,
    application: Application,
    applicant_id: str,
    applicant_type: ApplicantType,
) -> tuple[str | None, str | None]:
    """Return ``(first_name, last_name)`` of the person a document belongs to."""

    if applicant_type is ApplicantType.POSTULANT:
        if applicant_id != application.applicant_id:
            raise ValidationFailedError("Applicant does not belong to this application")
        profile = await profiles_repo.get_by_id(session, applicant_id)
        if profile is None:
            return None, None
        return profile.first_name, profile.paternal_last_name

    for guarantor in await applications_repo.list_guarantors(session, application.id):
        if guarantor.id == applicant_id:
            return guarantor.first_name, guarantor.paternal_last_name
    raise ValidationFailedError("Guarantor does not belong to this application")


async def upload_document(
    application_id: str,
    *,
    applicant_id: str,
    applicant_type: ApplicantType,
    document_type: str,
    file_name: str,
    content: bytes,
    content_type: str | None,
    ctx: SessionContext,
    session: AsyncSession,
    bucket: StorageBucket,
) -> schemas.DocumentOut:
    """Store a document file and record it against the application."""

    if not content:
        raise ValidationFailedError("Document payload was empty")
    if len(content) > MAX_DOCUMENT_BYTES:
        raise ValidationFailedError("Document exceeds the 10 MB limit")

    label = DOCUMENT_LABELS.get(document_type)
    if label is None:
        raise ValidationFailedError(f"Unknown document type: {document_type}")

    uploaded_path: str | None = None
    try:
        async with translate_backend_errors("Saving document"):
            async with session.begin():
                application = await require_application(session, application_id)
                prop = await require_property(session, application.property_id)
                require_participant(application, prop, ctx)

                first_name, last_name = await _resolve_applicant(session, application, applicant_id, applicant_type)
                stored_name = stored_file_name(first_name, last_name, label, file_name)
                path = f"{application.id}/{applicant_id}/{stored_name}"

                await bucket.upload(path, content)
                uploaded_path = path
                document = await documents_repo.create(
                    session,
                    application_id=application.id,
                    applicant_id=applicant_id,
                    applicant_type=applicant_type,
                    document_type=document_type,
                    document_label=label,
                    file_name=stored_name,
                    original_file_name=file_name,
                    file_path=path,
                    mime_type=content_type,
                    file_size=len(content),
                    uploaded_by=ctx.user_id,
                )
    except Exception:
        if uploaded_path is not None:
            logger.warning("Removing orphaned upload %s", uploaded_path)
            await discard(bucket, [uploaded_path])
        raise

    logger.info("Document %s (%s) uploaded for application %s", document.id, document_type, application.id)
    return schemas.DocumentOut.model_validate(document)


async def list_documents(
    application_id: str,
    ctx: SessionContext,
    session: AsyncSession,
) -> list[schemas.DocumentOut]:
    application = await require_application(session, application_id)
    prop = await require_property(session, application.property_id)
    require_participant(application, prop, ctx)
    rows = await documents_repo.list_for_application(session, application.id)
    return [schemas.DocumentOut.model_validate(row) for row in rows]


async def get_checklist(
    application_id: str,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.ChecklistResponse:
    """Required and missing documents for the applicant and each guarantor."""

    application = await require_application(session, application_id)
    prop = await require_property(session, application.property_id)
    require_participant(application, prop, ctx)

    profile = await profiles_repo.get_by_id(session, application.applicant_id)
    applicants = [
        (
            application.applicant_id,
            ApplicantType.POSTULANT,
            (profile.full_name if profile else "") or application.applicant_id,
        )
    ]
    for guarantor in await applications_repo.list_guarantors(session, application.id):
        name = " ".join(part for part in (guarantor.first_name, guarantor.paternal_last_name) if part)
        applicants.append((guarantor.id, ApplicantType.GUARANTOR, name))

    documents = await documents_repo.list_for_application(session, application.id)
    checklists = build_checklist(applicants, documents)

    return schemas.ChecklistResponse(
        application_id=application.id,
        applicants=[
            schemas.ApplicantChecklistOut(
                applicant_id=item.applicant_id,
                applicant_type=item.applicant_type,
                name=item.name,
                required=[schemas.RequiredDocumentOut(type=doc.type, label=doc.label) for doc in item.required],
                satisfied=item.satisfied,
                missing=[schemas.RequiredDocumentOut(type=doc.type, label=doc.label) for doc in item.missing],
                complete=item.complete,
            )
            for item in checklists
        ],
    )


async def _load(session: AsyncSession, document_id: str) -> ApplicationDocument:
    document = await documents_repo.get_by_id(session, document_id)
    if document is None:
        raise NotFoundError("Document not found")
    return document


async def review_document(
    document_id: str,
    payload: schemas.DocumentReviewRequest,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.DocumentOut:
    """Owner marks a document verified or rejected."""

    if payload.status is DocumentStatus.REJECTED and not (payload.rejection_reason or "").strip():
        raise ValidationFailedError("A rejection reason is required")

    async with translate_backend_errors("Reviewing document"):
        async with session.begin():
            document = await _load(session, document_id)
            application = await require_application(session, document.application_id)
            prop = await require_property(session, application.property_id)
            require_owner(prop, ctx)

            document.status = payload.status
            document.rejection_reason = (
                payload.rejection_reason.strip() if payload.status is DocumentStatus.REJECTED else None
            )
            session.add(document)

    return schemas.DocumentOut.model_validate(document)


async def delete_document(
    document_id: str,
    ctx: SessionContext,
    session: AsyncSession,
    bucket: StorageBucket,
) -> None:
    """Delete the row, then its stored file. Uploader, applicant or property owner only."""

    async with translate_backend_errors("Deleting document"):
        async with session.begin():
            document = await _load(session, document_id)
            application = await require_application(session, document.application_id)
            prop = await require_property(session, application.property_id)
            if ctx.user_id not in {document.uploaded_by, prop.owner_id, application.applicant_id}:
                raise PermissionDeniedError("Not allowed to delete this document")

            file_path = document.file_path
            await documents_repo.delete(session, document)

    await discard(bucket, [file_path])
    logger.info("Document %s deleted by %s", document_id, ctx.user_id)


async def download_document(
    document_id: str,
    ctx: SessionContext,
    session: AsyncSession,
    bucket: StorageBucket,
) -> DownloadedDocument:
    document = await _load(session, document_id)
    application = await require_application(session, document.application_id)
    prop = await require_property(session, application.property_id)
    require_participant(application, prop, ctx)

    content = await bucket.download(document.file_path)
    media_type = (
        document.mime_type
        or mimetypes.guess_type(document.file_name)[0]
        or "application/octet-stream"
    )
    return DownloadedDocument(file_name=document.file_name, media_type=media_type, content=content)
