"""Schemas for rental applications."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..models.application import ApplicationStatus
from .profiles import ProfileOut
from .properties import PropertyOut

MIN_MESSAGE_LENGTH = 30


class ApplicationCreateRequest(BaseModel):
    property_id: str
    message: str
    full_name: str | None = None
    contact_phone: str | None = None


class ApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    applicant_id: str
    message: str | None = None
    status: ApplicationStatus
    created_at: datetime
    updated_at: datetime
    approved_at: datetime | None = None


class GuarantorCreateRequest(BaseModel):
    first_name: str = Field(min_length=1)
    paternal_last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    profession: str | None = None
    monthly_income: int | None = Field(default=None, ge=0)


class GuarantorOut(GuarantorCreateRequest):
    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str


class ApplicationDetail(BaseModel):
    application: ApplicationOut
    property: PropertyOut
    applicant: ProfileOut | None = None
    guarantors: list[GuarantorOut] = Field(default_factory=list)
    allowed_actions: list[str] = Field(default_factory=list)


class ApplicationDashboard(BaseModel):
    received: list[ApplicationOut]
    sent: list[ApplicationOut]


class AuditEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    action_type: str
    previous_status: str | None = None
    new_status: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    notes: str | None = None
    created_at: datetime
