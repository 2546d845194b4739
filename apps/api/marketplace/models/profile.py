"""Profile model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class Profile(Base):
    """Identity and contact attributes of a marketplace user."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    first_name: Mapped[str | None] = mapped_column(String)
    paternal_last_name: Mapped[str | None] = mapped_column(String)
    maternal_last_name: Mapped[str | None] = mapped_column(String)
    email: Mapped[str | None] = mapped_column(String)
    phone: Mapped[str | None] = mapped_column(String)
    profession: Mapped[str | None] = mapped_column(String)
    monthly_income: Mapped[int | None] = mapped_column(Integer)
    age: Mapped[int | None] = mapped_column(Integer)
    nationality: Mapped[str | None] = mapped_column(String)
    marital_status: Mapped[str | None] = mapped_column(String)
    address_street: Mapped[str | None] = mapped_column(String)
    address_number: Mapped[str | None] = mapped_column(String)
    address_commune: Mapped[str | None] = mapped_column(String)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.paternal_last_name, self.maternal_last_name]
        return " ".join(part for part in parts if part).strip()
