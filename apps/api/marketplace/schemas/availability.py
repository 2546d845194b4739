"""Schemas for the availability calendar and visit requests."""
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models.visit import VisitStatus


class AvailabilityDayRequest(BaseModel):
    time_slots: list[str] | None = Field(default=None, description="Hour tokens such as '10-11'")


class AvailabilityDayOut(BaseModel):
    date: date
    time_slots: list[str]


class AvailabilityResponse(BaseModel):
    property_id: str
    days: list[AvailabilityDayOut]


class TimeSlotOption(BaseModel):
    id: str
    label: str


class SelectableSlotsResponse(BaseModel):
    date: date
    slots: list[TimeSlotOption]


class VisitCreateRequest(BaseModel):
    requested_date: date
    requested_time_slot: str
    message: str | None = Field(default=None, max_length=1000)


class VisitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    user_id: str
    requested_date: date
    requested_time_slot: str
    message: str | None = None
    status: VisitStatus
    created_at: datetime
