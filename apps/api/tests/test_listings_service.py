"""Tests for property listings and their images."""
from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from marketplace.core.auth import SessionContext
from marketplace.core.errors import ConflictError, PermissionDeniedError, ValidationFailedError
from marketplace.models.property import ListingType, PropertyStatus
from marketplace.repositories import profiles as profiles_repo
from marketplace.repositories import properties as properties_repo
from marketplace.schemas import properties as schemas
from marketplace.services import listings as listings_service

OWNER = SessionContext(user_id="owner-1", email="carla@example.com")
VISITOR = SessionContext(user_id="visitor-1")


class DummySession:
    def __init__(self) -> None:
        self.added: list[object] = []
        self.statements: list[object] = []

    def add(self, obj: object) -> None:
        self.added.append(obj)

    async def execute(self, stmt):
        self.statements.append(stmt)
        return SimpleNamespace(scalars=lambda: SimpleNamespace(all=lambda: []))

    def begin(self):  # noqa: D401 - mimic SQLAlchemy's async begin
        session = self

        class _Tx:
            async def __aenter__(self_inner):
                return session

            async def __aexit__(self_inner, exc_type, exc, tb):
                return False

        return _Tx()


class MemoryBucket:
    name = "property-images"

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    async def upload(self, path: str, data: bytes, *, upsert: bool = False) -> str:
        self.files[path] = data
        return path

    async def download(self, path: str) -> bytes:
        return self.files[path]

    async def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.files.pop(path, None)

    async def list(self, prefix: str = "") -> list[str]:
        return sorted(path for path in self.files if path.startswith(prefix))


def make_property(**overrides):
    values = dict(
        id="prop-1",
        owner_id=OWNER.user_id,
        listing_type=ListingType.RENTAL,
        address_street="Av. Providencia",
        address_number="2124",
        address_commune="Providencia",
        address_region="Metropolitana",
        price=650000,
        bedrooms=2,
        bathrooms=1,
        surface_m2=None,
        description="Bright loft near the metro",
        status=PropertyStatus.AVAILABLE,
        created_at=datetime(2025, 9, 1, tzinfo=timezone.utc),
        images=[],
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.mark.asyncio
async def test_search_passes_filters_and_paging(monkeypatch):
    search = AsyncMock(return_value=[make_property()])
    monkeypatch.setattr(properties_repo, "search", search)
    filters = schemas.PropertyFilters(listing_type=ListingType.RENTAL, location="Providencia")

    response = await listings_service.search_properties(filters, DummySession(), limit=10, offset=20)

    assert [row.id for row in response.results] == ["prop-1"]
    assert (response.limit, response.offset) == (10, 20)
    assert search.await_args.kwargs["filters"] is filters


def test_contains_pattern_escapes_wildcards():
    assert properties_repo.contains_pattern("50%_off") == "%50\\%\\_off%"
    assert properties_repo.contains_pattern("a\\b") == "%a\\\\b%"


@pytest.mark.asyncio
async def test_location_search_matches_wildcards_literally():
    session = DummySession()

    await properties_repo.search(
        session, filters=schemas.PropertyFilters(location="Ñuñoa_%"), limit=5
    )

    compiled = session.statements[0].compile()
    assert "ESCAPE" in str(compiled)
    assert "%ñuñoa\\_\\%%" in compiled.params.values()


@pytest.mark.asyncio
async def test_create_property_belongs_to_caller(monkeypatch):
    upsert = AsyncMock()
    monkeypatch.setattr(profiles_repo, "upsert", upsert)
    create = AsyncMock(side_effect=lambda session, owner_id, **fields: make_property(owner_id=owner_id))
    monkeypatch.setattr(properties_repo, "create", create)
    payload = schemas.PropertyCreateRequest(
        listing_type=ListingType.RENTAL,
        address_street="Av. Providencia",
        address_commune="Providencia",
        address_region="Metropolitana",
        price=650000,
    )

    created = await listings_service.create_property(payload, OWNER, DummySession())

    assert created.owner_id == OWNER.user_id
    assert upsert.await_args.kwargs["email"] == "carla@example.com"
    assert create.await_args.kwargs["price"] == 650000


@pytest.mark.asyncio
async def test_update_clears_only_clearable_fields(monkeypatch):
    prop = make_property()
    monkeypatch.setattr(properties_repo, "get_by_id", AsyncMock(return_value=prop))
    payload = schemas.PropertyUpdateRequest(price=None, description=None, bedrooms=3)

    updated = await listings_service.update_property("prop-1", payload, OWNER, DummySession())

    assert updated.price == 650000
    assert updated.description is None
    assert updated.bedrooms == 3


@pytest.mark.asyncio
async def test_update_is_owner_only(monkeypatch):
    prop = make_property()
    monkeypatch.setattr(properties_repo, "get_by_id", AsyncMock(return_value=prop))

    with pytest.raises(PermissionDeniedError):
        await listings_service.update_property(
            "prop-1", schemas.PropertyUpdateRequest(price=1), VISITOR, DummySession()
        )

    assert prop.price == 650000


@pytest.mark.asyncio
async def test_image_upload_rejects_unsupported_type(monkeypatch):
    bucket = MemoryBucket()

    with pytest.raises(ValidationFailedError):
        await listings_service.add_property_image(
            "prop-1",
            file_name="plan.gif",
            content=b"GIF89a",
            content_type="image/gif",
            ctx=OWNER,
            session=DummySession(),
            bucket=bucket,
        )

    assert bucket.files == {}


@pytest.mark.asyncio
async def test_image_upload_stores_and_links_file(monkeypatch):
    monkeypatch.setattr(properties_repo, "get_by_id", AsyncMock(return_value=make_property()))
    monkeypatch.setattr(
        properties_repo,
        "add_image",
        AsyncMock(side_effect=lambda session, **fields: SimpleNamespace(id="img-1", **fields)),
    )
    bucket = MemoryBucket()

    image = await listings_service.add_property_image(
        "prop-1",
        file_name="Living.PNG",
        content=b"\x89PNG",
        content_type="image/png",
        ctx=OWNER,
        session=DummySession(),
        bucket=bucket,
    )

    [path] = bucket.files
    assert path.startswith("prop-1/") and path.endswith(".png")
    assert image.image_url == f"/property-images/{path}"


@pytest.mark.asyncio
async def test_image_upload_removes_file_when_insert_fails(monkeypatch):
    monkeypatch.setattr(properties_repo, "get_by_id", AsyncMock(return_value=make_property()))
    monkeypatch.setattr(properties_repo, "add_image", AsyncMock(side_effect=ConflictError("Saving property image failed")))
    bucket = MemoryBucket()

    with pytest.raises(ConflictError):
        await listings_service.add_property_image(
            "prop-1",
            file_name="living.jpg",
            content=b"\xff\xd8",
            content_type="image/jpeg",
            ctx=OWNER,
            session=DummySession(),
            bucket=bucket,
        )

    assert bucket.files == {}
