"""Schemas for purchase offers."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models.offer import OfferStatus


class OfferCreateRequest(BaseModel):
    property_id: str
    amount: int = Field(gt=0)
    message: str | None = Field(default=None, max_length=2000)


class OfferOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    offerer_id: str
    amount: int
    message: str | None = None
    status: OfferStatus
    created_at: datetime


class OfferDashboard(BaseModel):
    received: list[OfferOut]
    sent: list[OfferOut]
