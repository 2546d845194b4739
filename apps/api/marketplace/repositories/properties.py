"""Data access helpers for property listings."""
from __future__ import annotations

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.property import ListingType, Property, PropertyImage, PropertyStatus


class PropertyFiltersProtocol:
    """Duck-typed filter object accepted by :func:`search`."""

    listing_type: ListingType | None
    location: str | None
    price_min: int | None
    price_max: int | None
    bedrooms: int | None
    bathrooms: int | None
    status: PropertyStatus | None


def contains_pattern(term: str) -> str:
    """``LIKE`` pattern matching ``term`` literally anywhere, escaped with backslash."""

    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def get_by_id(session: AsyncSession, property_id: str) -> Property | None:
    """Return a property by identifier."""

    return await session.get(Property, property_id)


async def search(
    session: AsyncSession,
    *,
    filters: "PropertyFiltersProtocol",
    limit: int,
    offset: int = 0,
) -> list[Property]:
    """Return listings matching the supplied filters, newest first."""

    stmt: Select[tuple[Property]] = select(Property)

    if filters.listing_type is not None:
        stmt = stmt.where(Property.listing_type == filters.listing_type)
    if filters.status is not None:
        stmt = stmt.where(Property.status == filters.status)
    if filters.location:
        location = contains_pattern(filters.location.lower())
        stmt = stmt.where(
            or_(
                func.lower(Property.address_commune).like(location, escape="\\"),
                func.lower(Property.address_region).like(location, escape="\\"),
                func.lower(Property.address_street).like(location, escape="\\"),
            )
        )
    if filters.price_min is not None:
        stmt = stmt.where(Property.price >= filters.price_min)
    if filters.price_max is not None:
        stmt = stmt.where(Property.price <= filters.price_max)
    if filters.bedrooms is not None:
        stmt = stmt.where(Property.bedrooms >= filters.bedrooms)
    if filters.bathrooms is not None:
        stmt = stmt.where(Property.bathrooms >= filters.bathrooms)

    stmt = stmt.order_by(Property.created_at.desc(), Property.id.asc()).limit(limit).offset(offset)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_by_owner(session: AsyncSession, owner_id: str) -> list[Property]:
    stmt = select(Property).where(Property.owner_id == owner_id).order_by(Property.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def ids_owned_by(session: AsyncSession, owner_id: str) -> list[str]:
    """Return identifiers of the properties owned by ``owner_id``."""

    result = await session.execute(select(Property.id).where(Property.owner_id == owner_id))
    return list(result.scalars().all())


async def create(session: AsyncSession, *, owner_id: str, **fields: object) -> Property:
    """Persist a new property and return it."""

    prop = Property(owner_id=owner_id, images=[], **fields)
    session.add(prop)
    await session.flush()
    return prop


async def add_image(
    session: AsyncSession, *, property_id: str, image_url: str, storage_path: str | None
) -> PropertyImage:
    image = PropertyImage(property_id=property_id, image_url=image_url, storage_path=storage_path)
    session.add(image)
    await session.flush()
    return image
