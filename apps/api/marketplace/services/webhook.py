"""Best-effort webhook notifications to the workflow automation service.

Notifications are a side channel: :class:`BestEffortNotifier` never raises,
does not retry and gives no ordering guarantee between concurrent sends. The
receiver is expected to tolerate duplicates.
"""
from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Protocol, Sequence

import httpx

from ..core.config import Settings, settings

logger = logging.getLogger(__name__)

NOT_SPECIFIED = "not specified"
SOURCE = "marketplace_api"


class NotificationEvent(str, enum.Enum):
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_REJECTED = "application_rejected"
    OFFER_RECEIVED = "offer_received"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_REJECTED = "offer_rejected"


_DECISIONS: dict[NotificationEvent, str | None] = {
    NotificationEvent.APPLICATION_APPROVED: "approved",
    NotificationEvent.APPLICATION_REJECTED: "rejected",
    NotificationEvent.OFFER_RECEIVED: None,
    NotificationEvent.OFFER_ACCEPTED: "accepted",
    NotificationEvent.OFFER_REJECTED: "rejected",
}


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an object, tolerating missing data."""

    if obj is None:
        return default
    if isinstance(obj, Mapping):
        value = obj.get(name, default)
    else:
        value = getattr(obj, name, default)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def _full_name(person: Any) -> str:
    parts = [_field(person, "first_name"), _field(person, "paternal_last_name")]
    name = " ".join(str(part) for part in parts if part).strip()
    return name or _field(person, "full_name") or NOT_SPECIFIED


def _person_block(person: Any) -> dict[str, Any]:
    return {
        "id": _field(person, "id"),
        "full_name": _full_name(person),
        "contact_email": _field(person, "email") or NOT_SPECIFIED,
        "contact_phone": _field(person, "phone"),
    }


def _property_block(prop: Any) -> dict[str, Any]:
    street = _field(prop, "address_street") or ""
    number = _field(prop, "address_number") or ""
    images = _field(prop, "images") or []
    return {
        "id": _field(prop, "id"),
        "address": f"{street} {number}".strip(),
        "commune": _field(prop, "address_commune"),
        "region": _field(prop, "address_region"),
        "price": _field(prop, "price"),
        "listing_type": _field(prop, "listing_type"),
        "bedrooms": _field(prop, "bedrooms"),
        "bathrooms": _field(prop, "bathrooms"),
        "surface_m2": _field(prop, "surface_m2"),
        "photos_urls": [_field(image, "image_url") for image in images if _field(image, "image_url")],
    }


def _metadata(config: Settings) -> dict[str, Any]:
    return {
        "source": SOURCE,
        "environment": "production" if config.is_production else "development",
    }


def build_application_payload(
    event: NotificationEvent,
    application: Any,
    property: Any,
    applicant: Any,
    owner: Any,
    *,
    config: Settings = settings,
) -> dict[str, Any]:
    """Nested payload describing an application decision."""

    decision = _DECISIONS.get(event)
    applicant_block = _person_block(applicant)
    applicant_block["profession"] = _field(applicant, "profession")
    applicant_block["monthly_income"] = _field(applicant, "monthly_income")

    return {
        "action": event.value,
        "decision": decision,
        "status": decision,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "application": {
            "id": _field(application, "id"),
            "property_id": _field(application, "property_id"),
            "applicant_id": _field(application, "applicant_id"),
            "message": _field(application, "message"),
            "created_at": _field(application, "created_at"),
            "status": decision,
            "snapshot": {
                "profession": _field(application, "snapshot_applicant_profession")
                or _field(applicant, "profession")
                or NOT_SPECIFIED,
                "monthly_income": _field(application, "snapshot_applicant_monthly_income")
                or _field(applicant, "monthly_income")
                or 0,
                "age": _field(application, "snapshot_applicant_age") or 0,
                "nationality": _field(application, "snapshot_applicant_nationality") or NOT_SPECIFIED,
                "marital_status": _field(application, "snapshot_applicant_marital_status") or NOT_SPECIFIED,
                "address": _field(application, "snapshot_applicant_address") or NOT_SPECIFIED,
            },
        },
        "property": _property_block(property),
        "applicant": applicant_block,
        "property_owner": _person_block(owner),
        "metadata": _metadata(config),
    }


def build_offer_payload(
    event: NotificationEvent,
    offer: Any,
    property: Any,
    offerer: Any,
    owner: Any,
    *,
    config: Settings = settings,
) -> dict[str, Any]:
    """Nested payload describing a received or decided offer."""

    decision = _DECISIONS.get(event)
    return {
        "action": event.value,
        "decision": decision,
        "status": decision or "received",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "offer": {
            "id": _field(offer, "id"),
            "property_id": _field(offer, "property_id"),
            "offerer_id": _field(offer, "offerer_id"),
            "amount": _field(offer, "amount"),
            "message": _field(offer, "message"),
            "created_at": _field(offer, "created_at"),
        },
        "property": _property_block(property),
        "offerer": _person_block(offerer),
        "property_owner": _person_block(owner),
        "metadata": _metadata(config),
    }


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return str(value.value)
    return str(value)


def flatten_payload(payload: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """Flatten nested mappings into ``parent_child`` keys with string values.

    ``None`` values are dropped and sequences are joined with commas.
    """

    flat: dict[str, str] = {}
    for key, value in payload.items():
        name = f"{prefix}_{key}" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            flat.update(flatten_payload(value, name))
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            flat[name] = ",".join(_scalar(item) for item in value if item is not None)
        else:
            flat[name] = _scalar(value)
    return flat


class NotificationPort(Protocol):
    async def send(self, params: Mapping[str, str]) -> bool: ...


class WebhookClient:
    """HTTP GET client for the automation endpoint."""

    def __init__(
        self,
        config: Settings = settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    @property
    def endpoint(self) -> str | None:
        base = self._config.webhook_base_url
        if not base:
            return None
        return f"{base.rstrip('/')}/{self._config.webhook_path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": self._config.webhook_user_agent,
            "X-Webhook-Source": SOURCE,
        }
        if self._config.webhook_token:
            headers["Authorization"] = f"Bearer {self._config.webhook_token}"
        return headers

    async def send(self, params: Mapping[str, str]) -> bool:
        """Issue the GET request. Errors propagate to the caller."""

        url = self.endpoint
        if url is None:
            logger.info("Webhook not configured; skipping notification")
            return False

        async with httpx.AsyncClient(
            timeout=self._config.webhook_timeout_seconds, transport=self._transport
        ) as client:
            response = await client.get(url, params=dict(params), headers=self._headers())

        if not response.is_success:
            logger.warning("Webhook answered %s: %s", response.status_code, response.reason_phrase)
            return False

        try:
            body: Any = response.json()
        except ValueError:
            body = response.text
        logger.info("Webhook delivered %s: %s", params.get("action", "?"), body)
        return True


FailureHandler = Callable[[NotificationEvent, BaseException], None]


def log_failure(event: NotificationEvent, exc: BaseException) -> None:
    logger.warning("Notification %s not delivered: %s", event.value, exc)


class BestEffortNotifier:
    """Build, flatten and send notifications without ever raising."""

    def __init__(
        self,
        port: NotificationPort,
        *,
        on_failure: FailureHandler = log_failure,
        config: Settings = settings,
    ) -> None:
        self._port = port
        self._on_failure = on_failure
        self._config = config

    async def notify(self, event: NotificationEvent, **objects: Any) -> bool:
        """Send ``event`` for the given domain objects; return whether it was delivered.

        Application events take ``application``, ``property``, ``applicant`` and
        ``owner``; offer events take ``offer``, ``property``, ``offerer`` and ``owner``.
        """

        try:
            if event.value.startswith("application_"):
                payload = build_application_payload(
                    event,
                    objects.get("application"),
                    objects.get("property"),
                    objects.get("applicant"),
                    objects.get("owner"),
                    config=self._config,
                )
            else:
                payload = build_offer_payload(
                    event,
                    objects.get("offer"),
                    objects.get("property"),
                    objects.get("offerer"),
                    objects.get("owner"),
                    config=self._config,
                )
            return await self._port.send(flatten_payload(payload))
        except Exception as exc:  # noqa: BLE001 - notifications must not affect the caller
            try:
                self._on_failure(event, exc)
            except Exception:  # noqa: BLE001
                logger.exception("Notification failure handler raised")
            return False


def get_notifier() -> BestEffortNotifier:
    """FastAPI dependency providing the configured notifier."""

    return BestEffortNotifier(WebhookClient(settings))
