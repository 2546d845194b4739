"""Schemas for property listings."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from ..models.property import ListingType, PropertyStatus


class PropertyFilters(BaseModel):
    listing_type: ListingType | None = None
    location: str | None = None
    price_min: int | None = Field(default=None, ge=0)
    price_max: int | None = Field(default=None, ge=0)
    bedrooms: int | None = Field(default=None, ge=0)
    bathrooms: int | None = Field(default=None, ge=0)
    status: PropertyStatus | None = PropertyStatus.AVAILABLE


class PropertyImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    image_url: str


class PropertyCreateRequest(BaseModel):
    listing_type: ListingType
    address_street: str = Field(min_length=1)
    address_number: str | None = None
    address_commune: str = Field(min_length=1)
    address_region: str = Field(min_length=1)
    price: int = Field(gt=0)
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: int = Field(default=0, ge=0)
    surface_m2: Decimal | None = Field(default=None, gt=0)
    description: str | None = None


class PropertyUpdateRequest(BaseModel):
    address_street: str | None = Field(default=None, min_length=1)
    address_number: str | None = None
    address_commune: str | None = Field(default=None, min_length=1)
    address_region: str | None = Field(default=None, min_length=1)
    price: int | None = Field(default=None, gt=0)
    bedrooms: int | None = Field(default=None, ge=0)
    bathrooms: int | None = Field(default=None, ge=0)
    surface_m2: Decimal | None = Field(default=None, gt=0)
    description: str | None = None
    status: PropertyStatus | None = None


class PropertyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    listing_type: ListingType
    address_street: str
    address_number: str | None = None
    address_commune: str
    address_region: str
    price: int
    bedrooms: int
    bathrooms: int
    surface_m2: Decimal | None = None
    description: str | None = None
    status: PropertyStatus
    created_at: datetime
    images: list[PropertyImageOut] = Field(default_factory=list)


class PropertyListResponse(BaseModel):
    results: list[PropertyOut]
    limit: int
    offset: int
