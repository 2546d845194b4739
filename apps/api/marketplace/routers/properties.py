"""Property listing endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext, get_session_context
from ..db.session import get_session
from ..models.property import ListingType, PropertyStatus
from ..schemas import properties as properties_schema
from ..services import listings as listings_service
from ..services.storage import StorageBucket, get_images_bucket

router = APIRouter()


@router.get("/properties", response_model=properties_schema.PropertyListResponse)
async def search_properties(
    listing_type: ListingType | None = None,
    location: str | None = None,
    price_min: int | None = Query(default=None, ge=0),
    price_max: int | None = Query(default=None, ge=0),
    bedrooms: int | None = Query(default=None, ge=0),
    bathrooms: int | None = Query(default=None, ge=0),
    status_: PropertyStatus | None = Query(default=PropertyStatus.AVAILABLE, alias="status"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> properties_schema.PropertyListResponse:
    """Public listing search."""

    filters = properties_schema.PropertyFilters(
        listing_type=listing_type,
        location=location,
        price_min=price_min,
        price_max=price_max,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        status=status_,
    )
    return await listings_service.search_properties(filters, session, limit=limit, offset=offset)


@router.get("/properties/mine", response_model=list[properties_schema.PropertyOut])
async def list_my_properties(
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> list[properties_schema.PropertyOut]:
    return await listings_service.list_owned(ctx, session)


@router.post(
    "/properties",
    response_model=properties_schema.PropertyOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_property(
    payload: properties_schema.PropertyCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> properties_schema.PropertyOut:
    return await listings_service.create_property(payload, ctx, session)


@router.get("/properties/{property_id}", response_model=properties_schema.PropertyOut)
async def get_property(
    property_id: str,
    session: AsyncSession = Depends(get_session),
) -> properties_schema.PropertyOut:
    return await listings_service.get_property(property_id, session)


@router.patch("/properties/{property_id}", response_model=properties_schema.PropertyOut)
async def update_property(
    property_id: str,
    payload: properties_schema.PropertyUpdateRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> properties_schema.PropertyOut:
    return await listings_service.update_property(property_id, payload, ctx, session)


@router.post(
    "/properties/{property_id}/images",
    response_model=properties_schema.PropertyImageOut,
    status_code=status.HTTP_201_CREATED,
)
async def upload_property_image(
    property_id: str,
    image: UploadFile = File(...),
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    bucket: StorageBucket = Depends(get_images_bucket),
) -> properties_schema.PropertyImageOut:
    """Attach a photo to the listing."""

    content = await image.read()
    return await listings_service.add_property_image(
        property_id,
        file_name=image.filename or "image",
        content=content,
        content_type=image.content_type,
        ctx=ctx,
        session=session,
        bucket=bucket,
    )
