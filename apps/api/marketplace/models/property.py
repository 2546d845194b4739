"""Property listing model."""
from __future__ import annotations

from datetime import datetime
import enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_id, utcnow

if TYPE_CHECKING:
    from .application import Application
    from .availability import AvailabilitySlot
    from .offer import Offer


class ListingType(str, enum.Enum):
    SALE = "sale"
    RENTAL = "rental"


class PropertyStatus(str, enum.Enum):
    AVAILABLE = "available"
    SOLD = "sold"
    RENTED = "rented"


class Property(Base):
    """Listed property owned by a marketplace user."""

    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    listing_type: Mapped[ListingType] = mapped_column(Enum(ListingType, name="listing_type"), nullable=False)
    address_street: Mapped[str] = mapped_column(String, nullable=False)
    address_number: Mapped[str | None] = mapped_column(String)
    address_commune: Mapped[str] = mapped_column(String, nullable=False)
    address_region: Mapped[str] = mapped_column(String, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    bedrooms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    surface_m2: Mapped[float | None] = mapped_column(Numeric(10, 2))
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[PropertyStatus] = mapped_column(
        Enum(PropertyStatus, name="property_status"), default=PropertyStatus.AVAILABLE, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    images: Mapped[list["PropertyImage"]] = relationship(
        "PropertyImage", back_populates="property", cascade="all, delete-orphan", lazy="selectin"
    )
    applications: Mapped[list["Application"]] = relationship("Application", back_populates="property")
    offers: Mapped[list["Offer"]] = relationship("Offer", back_populates="property")
    availability: Mapped[list["AvailabilitySlot"]] = relationship(
        "AvailabilitySlot", back_populates="property", cascade="all, delete-orphan"
    )

    @property
    def full_address(self) -> str:
        return f"{self.address_street} {self.address_number or ''}".strip()


class PropertyImage(Base):
    __tablename__ = "property_images"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    property_id: Mapped[str] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    image_url: Mapped[str] = mapped_column(String, nullable=False)
    storage_path: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    property: Mapped["Property"] = relationship("Property", back_populates="images")
