"""Schemas for user profiles."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpsertRequest(BaseModel):
    first_name: str | None = None
    paternal_last_name: str | None = None
    maternal_last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    profession: str | None = None
    monthly_income: int | None = Field(default=None, ge=0)
    age: int | None = Field(default=None, ge=18, le=120)
    nationality: str | None = None
    marital_status: str | None = None
    address_street: str | None = None
    address_number: str | None = None
    address_commune: str | None = None


class ProfileOut(ProfileUpsertRequest):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str = ""
    updated_at: datetime | None = None
