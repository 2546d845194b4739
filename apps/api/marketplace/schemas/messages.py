"""Schemas for owner/applicant messaging."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageCreateRequest(BaseModel):
    body: str = Field(min_length=1, max_length=2000)


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str
    sender_id: str
    recipient_id: str
    body: str
    created_at: datetime
    read_at: datetime | None = None
