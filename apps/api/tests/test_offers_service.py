"""Service-level tests for purchase offers."""
from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from marketplace.core.auth import SessionContext
from marketplace.core.errors import ConflictError, InvalidStateError, PermissionDeniedError, ValidationFailedError
from marketplace.models.offer import OfferStatus
from marketplace.models.property import ListingType
from marketplace.repositories import offers as offers_repo
from marketplace.repositories import profiles as profiles_repo
from marketplace.repositories import properties as properties_repo
from marketplace.schemas import offers as schemas
from marketplace.services import offers as offers_service
from marketplace.services.webhook import NotificationEvent

OWNER = SessionContext(user_id="owner-1")
BUYER = SessionContext(user_id="buyer-1", email="buyer@example.com")
NOW = datetime(2025, 10, 10, tzinfo=timezone.utc)


class DummySession:
    def __init__(self) -> None:
        self.added: list[object] = []

    def add(self, obj: object) -> None:
        self.added.append(obj)

    def begin(self):  # noqa: D401 - mimic SQLAlchemy's async begin
        session = self

        class _Tx:
            async def __aenter__(self_inner):
                return session

            async def __aexit__(self_inner, exc_type, exc, tb):
                return False

        return _Tx()


def sale_property(**overrides):
    values = dict(id="prop-1", owner_id=OWNER.user_id, listing_type=ListingType.SALE, images=[])
    values.update(overrides)
    return SimpleNamespace(**values)


def make_offer(status=OfferStatus.PENDING):
    return SimpleNamespace(
        id="offer-1",
        property_id="prop-1",
        offerer_id=BUYER.user_id,
        amount=120_000_000,
        message=None,
        status=status,
        created_at=NOW,
    )


@pytest.mark.asyncio
async def test_offers_only_on_sale_listings(monkeypatch):
    monkeypatch.setattr(
        properties_repo, "get_by_id", AsyncMock(return_value=sale_property(listing_type=ListingType.RENTAL))
    )
    payload = schemas.OfferCreateRequest(property_id="prop-1", amount=1000)

    with pytest.raises(ValidationFailedError):
        await offers_service.submit_offer(payload, BUYER, DummySession(), SimpleNamespace(notify=AsyncMock()))


@pytest.mark.asyncio
async def test_duplicate_offer_is_conflict(monkeypatch):
    monkeypatch.setattr(properties_repo, "get_by_id", AsyncMock(return_value=sale_property()))
    monkeypatch.setattr(offers_repo, "find_for_offerer", AsyncMock(return_value=make_offer()))
    payload = schemas.OfferCreateRequest(property_id="prop-1", amount=1000)

    with pytest.raises(ConflictError):
        await offers_service.submit_offer(payload, BUYER, DummySession(), SimpleNamespace(notify=AsyncMock()))


@pytest.mark.asyncio
async def test_submit_offer_notifies_owner(monkeypatch):
    monkeypatch.setattr(properties_repo, "get_by_id", AsyncMock(return_value=sale_property()))
    monkeypatch.setattr(offers_repo, "find_for_offerer", AsyncMock(return_value=None))
    monkeypatch.setattr(profiles_repo, "upsert", AsyncMock())
    monkeypatch.setattr(profiles_repo, "get_many", AsyncMock(return_value={}))
    monkeypatch.setattr(offers_repo, "create", AsyncMock(return_value=make_offer()))
    notifier = SimpleNamespace(notify=AsyncMock(return_value=False))

    payload = schemas.OfferCreateRequest(property_id="prop-1", amount=120_000_000)
    response = await offers_service.submit_offer(payload, BUYER, DummySession(), notifier)

    assert response.status is OfferStatus.PENDING
    assert notifier.notify.await_args.args[0] is NotificationEvent.OFFER_RECEIVED


@pytest.mark.asyncio
async def test_owner_cannot_offer_on_own_property(monkeypatch):
    monkeypatch.setattr(properties_repo, "get_by_id", AsyncMock(return_value=sale_property()))
    payload = schemas.OfferCreateRequest(property_id="prop-1", amount=1000)

    with pytest.raises(PermissionDeniedError):
        await offers_service.submit_offer(payload, OWNER, DummySession(), SimpleNamespace(notify=AsyncMock()))


@pytest.mark.asyncio
async def test_accept_offer_moves_to_accepted(monkeypatch):
    offer = make_offer()
    monkeypatch.setattr(offers_repo, "get_by_id", AsyncMock(return_value=offer))
    monkeypatch.setattr(properties_repo, "get_by_id", AsyncMock(return_value=sale_property()))
    monkeypatch.setattr(offers_repo, "update_status", AsyncMock())
    monkeypatch.setattr(profiles_repo, "get_many", AsyncMock(return_value={}))
    notifier = SimpleNamespace(notify=AsyncMock(return_value=True))

    response = await offers_service.accept_offer("offer-1", OWNER, DummySession(), notifier)

    assert response.status == "accepted"
    assert offer.status is OfferStatus.ACCEPTED
    assert notifier.notify.await_args.args[0] is NotificationEvent.OFFER_ACCEPTED


@pytest.mark.asyncio
async def test_rejected_offer_cannot_be_accepted(monkeypatch):
    monkeypatch.setattr(offers_repo, "get_by_id", AsyncMock(return_value=make_offer(OfferStatus.REJECTED)))
    monkeypatch.setattr(properties_repo, "get_by_id", AsyncMock(return_value=sale_property()))

    with pytest.raises(InvalidStateError):
        await offers_service.accept_offer(
            "offer-1", OWNER, DummySession(), SimpleNamespace(notify=AsyncMock())
        )
