"""Schemas for application documents and checklists."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models.document import ApplicantType, DocumentStatus


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str
    applicant_id: str
    applicant_type: ApplicantType
    document_type: str
    document_label: str
    file_name: str
    file_path: str
    mime_type: str | None = None
    file_size: int | None = None
    status: DocumentStatus
    rejection_reason: str | None = None
    uploaded_at: datetime


class DocumentReviewRequest(BaseModel):
    status: DocumentStatus
    rejection_reason: str | None = None


class RequiredDocumentOut(BaseModel):
    type: str
    label: str


class ApplicantChecklistOut(BaseModel):
    applicant_id: str
    applicant_type: ApplicantType
    name: str
    required: list[RequiredDocumentOut] = Field(default_factory=list)
    satisfied: list[str] = Field(default_factory=list)
    missing: list[RequiredDocumentOut] = Field(default_factory=list)
    complete: bool


class ChecklistResponse(BaseModel):
    application_id: str
    applicants: list[ApplicantChecklistOut]
