"""Charge status transitions.

Status changes from staff edits, ``mark_paid`` and processor callbacks all go
through ``ChargeStatusService.transition`` so the ``paid_at`` rule and the
audit trail are applied in one place.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import AppError, NotFoundError
from app.models.charge import Charge, ChargeStatus
from app.models.shared import utc_now
from app.repositories.charge_repository import ChargeRepository
from app.schemas.charge import ChargeUpdate
from app.services.audit_service import AuditService

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ChargeStatus, frozenset[ChargeStatus]] = {
    ChargeStatus.PENDING: frozenset(
        {ChargeStatus.PAID, ChargeStatus.OVERDUE, ChargeStatus.CANCELLED, ChargeStatus.PARTIAL}
    ),
    ChargeStatus.OVERDUE: frozenset(
        {ChargeStatus.PAID, ChargeStatus.PARTIAL, ChargeStatus.CANCELLED, ChargeStatus.PENDING}
    ),
    ChargeStatus.PARTIAL: frozenset(
        {ChargeStatus.PAID, ChargeStatus.OVERDUE, ChargeStatus.CANCELLED, ChargeStatus.PENDING}
    ),
    ChargeStatus.PAID: frozenset({ChargeStatus.PENDING}),
    ChargeStatus.CANCELLED: frozenset({ChargeStatus.PENDING}),
}


class InvalidStatusTransition(AppError):
    code = "INVALID_STATUS_TRANSITION"
    status_code = 400

    def __init__(self, current: ChargeStatus, target: ChargeStatus):
        super().__init__(
            f"Cannot change charge status from '{current.value}' to '{target.value}'",
            details={
                "from": current.value,
                "to": target.value,
                "allowed": sorted(s.value for s in ALLOWED_TRANSITIONS[current]),
            },
        )


def can_transition(current: ChargeStatus, target: ChargeStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


def resolve_paid_at(
    target: ChargeStatus, requested: datetime | None, existing: datetime | None
) -> datetime | None:
    """``paid_at`` for a charge entering ``target``.

    Paid charges keep an explicit value, else the stored one, else now.
    Every other status has no payment date.
    """
    if target != ChargeStatus.PAID:
        return None
    return requested or existing or utc_now()


class ChargeStatusService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ChargeRepository(db)
        self.audit = AuditService(db)

    def get_charge(self, charge_id: UUID, tenant_id: UUID) -> Charge:
        charge = self.repo.get_by_id(charge_id, tenant_id)
        if charge is None:
            raise NotFoundError("Charge")
        return charge

    def _apply_status(
        self,
        charge: Charge,
        target: ChargeStatus,
        paid_at: datetime | None,
        actor_id: str | None,
    ) -> bool:
        """Move ``charge`` to ``target`` without committing. Returns whether it changed."""
        current = ChargeStatus(charge.status)
        if not can_transition(current, target):
            raise InvalidStatusTransition(current, target)

        if current == target:
            if target == ChargeStatus.PAID and paid_at is not None:
                charge.paid_at = paid_at  # type: ignore[assignment]
            return False

        charge.status = target.value  # type: ignore[assignment]
        charge.paid_at = resolve_paid_at(target, paid_at, charge.paid_at)  # type: ignore[assignment, arg-type]
        if target == ChargeStatus.CANCELLED:
            # Frees the period for a later generation run
            charge.generation_key = None  # type: ignore[assignment]
        self.audit.log_status_change(
            resource_type="charge",
            resource_id=charge.id,  # type: ignore[arg-type]
            tenant_id=charge.tenant_id,  # type: ignore[arg-type]
            old_status=current.value,
            new_status=target.value,
            actor_id=actor_id,
            commit=False,
        )
        logger.info("Charge %s: %s -> %s", charge.id, current.value, target.value)
        return True

    def transition(
        self,
        charge: Charge,
        target: ChargeStatus,
        *,
        paid_at: datetime | None = None,
        payment_method: str | None = None,
        actor_id: str | None = None,
    ) -> Charge:
        self._apply_status(charge, target, paid_at, actor_id)
        if payment_method is not None:
            charge.payment_method = payment_method  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(charge)
        return charge

    def mark_paid(
        self,
        charge_id: UUID,
        tenant_id: UUID,
        *,
        payment_method: str | None = None,
        paid_at: datetime | None = None,
        actor_id: str | None = None,
    ) -> Charge:
        charge = self.get_charge(charge_id, tenant_id)
        return self.transition(
            charge,
            ChargeStatus.PAID,
            paid_at=paid_at,
            payment_method=payment_method,
            actor_id=actor_id,
        )

    def update(
        self,
        charge_id: UUID,
        tenant_id: UUID,
        data: ChargeUpdate,
        actor_id: str | None = None,
    ) -> Charge:
        """Apply a staff edit; a status in ``data`` goes through the transition rules."""
        charge = self.get_charge(charge_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        target = update_data.pop("status", None)
        requested_paid_at = update_data.pop("paid_at", None)
        if update_data.get("payment_method") is not None:
            update_data["payment_method"] = update_data["payment_method"].value

        old = {key: getattr(charge, key) for key in update_data}
        if target is not None:
            self._apply_status(charge, ChargeStatus(target), requested_paid_at, actor_id)
        elif requested_paid_at is not None and charge.status == ChargeStatus.PAID.value:
            charge.paid_at = requested_paid_at  # type: ignore[assignment]

        for key, value in update_data.items():
            setattr(charge, key, value)
        self.db.commit()
        self.db.refresh(charge)

        self.audit.log_update(
            resource_type="charge",
            resource_id=charge.id,  # type: ignore[arg-type]
            tenant_id=tenant_id,
            actor_id=actor_id,
            old_data={k: _jsonable(v) for k, v in old.items()},
            new_data={k: _jsonable(getattr(charge, k)) for k in update_data},
        )
        return charge


def _jsonable(value: object) -> object:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
