"""Rental application and guarantor models."""
from __future__ import annotations

from datetime import datetime
import enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_id, utcnow

if TYPE_CHECKING:
    from .property import Property


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    FINALIZED = "finalized"
    MODIFIED = "modified"


class Application(Base):
    """Rental application submitted by an applicant for a property."""

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    property_id: Mapped[str] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    applicant_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    message: Mapped[str | None] = mapped_column(Text)
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status"), default=ApplicationStatus.PENDING, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    snapshot_applicant_profession: Mapped[str | None] = mapped_column(String)
    snapshot_applicant_monthly_income: Mapped[int | None] = mapped_column(Integer)
    snapshot_applicant_age: Mapped[int | None] = mapped_column(Integer)
    snapshot_applicant_nationality: Mapped[str | None] = mapped_column(String)
    snapshot_applicant_marital_status: Mapped[str | None] = mapped_column(String)
    snapshot_applicant_address: Mapped[str | None] = mapped_column(String)

    property: Mapped["Property"] = relationship("Property", back_populates="applications")
    guarantors: Mapped[list["Guarantor"]] = relationship(
        "Guarantor", back_populates="application", cascade="all, delete-orphan", lazy="selectin"
    )


class Guarantor(Base):
    """Guarantor backing an application."""

    __tablename__ = "guarantors"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    application_id: Mapped[str] = mapped_column(ForeignKey("applications.id", ondelete="CASCADE"), nullable=False)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    paternal_last_name: Mapped[str | None] = mapped_column(String)
    email: Mapped[str | None] = mapped_column(String)
    phone: Mapped[str | None] = mapped_column(String)
    profession: Mapped[str | None] = mapped_column(String)
    monthly_income: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    application: Mapped["Application"] = relationship("Application", back_populates="guarantors")
