"""Property listing operations."""
from __future__ import annotations

import logging
from pathlib import PurePosixPath
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import SessionContext
from ..core.errors import ValidationFailedError, translate_backend_errors
from ..repositories import profiles as profiles_repo
from ..repositories import properties as properties_repo
from ..schemas import properties as schemas
from .guards import require_owner, require_property
from .storage import StorageBucket, discard

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}
CLEARABLE_FIELDS = frozenset({"address_number", "surface_m2", "description"})


async def search_properties(
    filters: schemas.PropertyFilters,
    session: AsyncSession,
    *,
    limit: int,
    offset: int,
) -> schemas.PropertyListResponse:
    """Search listings visible to any visitor."""

    rows = await properties_repo.search(session, filters=filters, limit=limit, offset=offset)
    return schemas.PropertyListResponse(
        results=[schemas.PropertyOut.model_validate(row) for row in rows],
        limit=limit,
        offset=offset,
    )


async def get_property(property_id: str, session: AsyncSession) -> schemas.PropertyOut:
    prop = await require_property(session, property_id)
    return schemas.PropertyOut.model_validate(prop)


async def list_owned(ctx: SessionContext, session: AsyncSession) -> list[schemas.PropertyOut]:
    rows = await properties_repo.list_by_owner(session, ctx.user_id)
    return [schemas.PropertyOut.model_validate(row) for row in rows]


async def create_property(
    payload: schemas.PropertyCreateRequest,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.PropertyOut:
    """Publish a listing owned by the caller."""

    async with translate_backend_errors("Creating property"):
        async with session.begin():
            await profiles_repo.upsert(session, ctx.user_id, email=ctx.email)
            prop = await properties_repo.create(session, owner_id=ctx.user_id, **payload.model_dump())

    logger.info("Property %s published by %s", prop.id, ctx.user_id)
    return schemas.PropertyOut.model_validate(prop)


async def update_property(
    property_id: str,
    payload: schemas.PropertyUpdateRequest,
    ctx: SessionContext,
    session: AsyncSession,
) -> schemas.PropertyOut:
    """Apply a partial update; only the owner may change a listing."""

    changes = payload.model_dump(exclude_unset=True)
    async with translate_backend_errors("Updating property"):
        async with session.begin():
            prop = await require_property(session, property_id)
            require_owner(prop, ctx)
            for name, value in changes.items():
                if value is None and name not in CLEARABLE_FIELDS:
                    continue
                setattr(prop, name, value)
            session.add(prop)

    return schemas.PropertyOut.model_validate(prop)


async def add_property_image(
    property_id: str,
    *,
    file_name: str,
    content: bytes,
    content_type: str | None,
    ctx: SessionContext,
    session: AsyncSession,
    bucket: StorageBucket,
) -> schemas.PropertyImageOut:
    """Store an image in the images bucket and attach it to the listing."""

    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationFailedError("Only JPEG, PNG or WebP images are accepted")
    if not content:
        raise ValidationFailedError("Image payload was empty")

    uploaded_path: str | None = None
    try:
        async with translate_backend_errors("Saving property image"):
            async with session.begin():
                prop = await require_property(session, property_id)
                require_owner(prop, ctx)

                extension = PurePosixPath(file_name).suffix.lower() or ".jpg"
                path = f"{property_id}/{uuid4().hex}{extension}"
                await bucket.upload(path, content)
                uploaded_path = path
                image = await properties_repo.add_image(
                    session, property_id=property_id, image_url=f"/{bucket.name}/{path}", storage_path=path
                )
    except Exception:
        if uploaded_path is not None:
            await discard(bucket, [uploaded_path])
        raise

    logger.info("Image %s added to property %s", image.id, property_id)
    return schemas.PropertyImageOut.model_validate(image)
