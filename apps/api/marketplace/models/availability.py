"""Availability model."""
from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utcnow

if TYPE_CHECKING:
    from .property import Property


class AvailabilitySlot(Base):
    """Hour ranges on a given date when the owner accepts visits."""

    __tablename__ = "availability_slots"

    property_id: Mapped[str] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), primary_key=True)
    slot_date: Mapped[date] = mapped_column(Date, primary_key=True)
    time_slots: Mapped[list[str]] = mapped_column(ARRAY(String), default=list, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    property: Mapped["Property"] = relationship("Property", back_populates="availability")
