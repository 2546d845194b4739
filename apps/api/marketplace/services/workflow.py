"""Status transitions for applications and offers.

Each transition is described by a :class:`TransitionRule`. Optimistic rules
write the new status onto the local row first and put the previous status back
if persisting fails; the other rules persist first and only then touch the
local row. Both paths go through :class:`StatusChange`, so the window where
local and persisted state differ is observable through its ``phase``.

No rule leaves ``rejected``, while ``approved`` can be undone back to
``pending``. That asymmetry mirrors the screens this API serves.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from ..core.errors import InvalidStateError, ValidationFailedError
from ..models.application import ApplicationStatus
from ..models.offer import OfferStatus

logger = logging.getLogger(__name__)

Persist = Callable[[enum.Enum], Awaitable[None]]


class ChangePhase(str, enum.Enum):
    TENTATIVE = "tentative"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


@dataclass
class StatusChange:
    """A status change on one row, tracked from tentative to confirmed or reverted."""

    target: Any
    previous: enum.Enum
    proposed: enum.Enum
    attribute: str = "status"
    phase: ChangePhase = field(default=ChangePhase.TENTATIVE)

    def apply(self) -> None:
        self._require_tentative("apply")
        setattr(self.target, self.attribute, self.proposed)

    def confirm(self) -> None:
        self._require_tentative("confirm")
        self.phase = ChangePhase.CONFIRMED

    def revert(self) -> None:
        self._require_tentative("revert")
        setattr(self.target, self.attribute, self.previous)
        self.phase = ChangePhase.REVERTED

    def _require_tentative(self, step: str) -> None:
        if self.phase is not ChangePhase.TENTATIVE:
            raise RuntimeError(f"Cannot {step} a change that is already {self.phase.value}")


@dataclass(frozen=True)
class TransitionRule:
    name: str
    sources: frozenset[enum.Enum]
    target: enum.Enum
    optimistic: bool = False
    requires_confirmation: bool = False

    def permits(self, status: enum.Enum) -> bool:
        return status in self.sources


APPLICATION_RULES: Mapping[str, TransitionRule] = {
    "approve": TransitionRule(
        name="approve",
        sources=frozenset({ApplicationStatus.PENDING}),
        target=ApplicationStatus.APPROVED,
        optimistic=True,
    ),
    "reject": TransitionRule(
        name="reject",
        sources=frozenset({ApplicationStatus.PENDING}),
        target=ApplicationStatus.REJECTED,
    ),
    "undo": TransitionRule(
        name="undo",
        sources=frozenset({ApplicationStatus.APPROVED}),
        target=ApplicationStatus.PENDING,
        optimistic=True,
        requires_confirmation=True,
    ),
}

OFFER_RULES: Mapping[str, TransitionRule] = {
    "accept": TransitionRule(
        name="accept",
        sources=frozenset({OfferStatus.PENDING}),
        target=OfferStatus.ACCEPTED,
        optimistic=True,
    ),
    "reject": TransitionRule(
        name="reject",
        sources=frozenset({OfferStatus.PENDING}),
        target=OfferStatus.REJECTED,
    ),
}


def allowed_actions(rules: Mapping[str, TransitionRule], status: enum.Enum) -> list[str]:
    """Return the actions that may be offered for a row in ``status``."""

    return [name for name, rule in rules.items() if rule.permits(status)]


async def run_transition(
    rule: TransitionRule,
    row: Any,
    persist: Persist,
    *,
    confirmed: bool = False,
) -> StatusChange:
    """Move ``row`` along ``rule``, persisting through ``persist``.

    Raises :class:`InvalidStateError` when the current status is not a source of
    the rule. Persistence errors propagate after the local row has been restored.
    """

    current = row.status
    if not rule.permits(current):
        raise InvalidStateError(f"Cannot {rule.name} while status is {_value(current)}")
    if rule.requires_confirmation and not confirmed:
        raise ValidationFailedError(f"Confirmation is required to {rule.name}")

    change = StatusChange(target=row, previous=current, proposed=rule.target)

    if rule.optimistic:
        change.apply()
        try:
            await persist(rule.target)
        except Exception:
            change.revert()
            logger.warning(
                "Reverted %s on %s back to %s", rule.name, getattr(row, "id", "?"), _value(current)
            )
            raise
        change.confirm()
        return change

    await persist(rule.target)
    change.apply()
    change.confirm()
    return change


def _value(status: object) -> str:
    return status.value if isinstance(status, enum.Enum) else str(status)
