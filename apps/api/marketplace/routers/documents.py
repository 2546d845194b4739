"""Application document endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext, get_session_context
from ..db.session import get_session
from ..models.document import ApplicantType
from ..schemas import documents as documents_schema
from ..services import documents as documents_service
from ..services.storage import StorageBucket, get_documents_bucket

router = APIRouter()


@router.post(
    "/applications/{application_id}/documents",
    response_model=documents_schema.DocumentOut,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    application_id: str,
    applicant_id: str = Form(...),
    applicant_type: ApplicantType = Form(...),
    document_type: str = Form(...),
    file: UploadFile = File(...),
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    bucket: StorageBucket = Depends(get_documents_bucket),
) -> documents_schema.DocumentOut:
    content = await file.read()
    return await documents_service.upload_document(
        application_id,
        applicant_id=applicant_id,
        applicant_type=applicant_type,
        document_type=document_type,
        file_name=file.filename or "document",
        content=content,
        content_type=file.content_type,
        ctx=ctx,
        session=session,
        bucket=bucket,
    )


@router.get("/applications/{application_id}/documents", response_model=list[documents_schema.DocumentOut])
async def list_documents(
    application_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> list[documents_schema.DocumentOut]:
    return await documents_service.list_documents(application_id, ctx, session)


@router.get("/applications/{application_id}/checklist", response_model=documents_schema.ChecklistResponse)
async def get_checklist(
    application_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> documents_schema.ChecklistResponse:
    """Required documents per applicant and guarantor, with what is still missing."""

    return await documents_service.get_checklist(application_id, ctx, session)


@router.patch("/documents/{document_id}", response_model=documents_schema.DocumentOut)
async def review_document(
    document_id: str,
    payload: documents_schema.DocumentReviewRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> documents_schema.DocumentOut:
    return await documents_service.review_document(document_id, payload, ctx, session)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    bucket: StorageBucket = Depends(get_documents_bucket),
) -> Response:
    await documents_service.delete_document(document_id, ctx, session, bucket)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/documents/{document_id}/download")
async def download_document(
    document_id: str,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    bucket: StorageBucket = Depends(get_documents_bucket),
) -> Response:
    document = await documents_service.download_document(document_id, ctx, session, bucket)
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.file_name}"'},
    )
