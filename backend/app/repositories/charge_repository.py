from datetime import date
from uuid import UUID

from sqlalchemy.orm import Query, Session

from app.core.sorting import apply_order_by
from app.models.athlete import Athlete
from app.models.charge import OPEN_OR_SETTLED_STATUSES, Charge, ChargeStatus
from app.models.shared import utc_now
from app.schemas.charge import ChargeCreate

CHARGE_SORT_FIELDS = ("created_at", "due_date", "period", "amount_cents", "status", "label")


class ChargeRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        tenant_id: UUID,
        academy_id: UUID | None = None,
        period: str | None = None,
        group_id: UUID | None = None,
        athlete_id: UUID | None = None,
        statuses: list[str] | None = None,
    ) -> Query:  # type: ignore[type-arg]
        query = self.db.query(Charge).filter(Charge.tenant_id == tenant_id)
        if academy_id is not None:
            query = query.filter(Charge.academy_id == academy_id)
        if period is not None:
            query = query.filter(Charge.period == period)
        if athlete_id is not None:
            query = query.filter(Charge.athlete_id == athlete_id)
        if group_id is not None:
            query = query.join(Athlete, Athlete.id == Charge.athlete_id).filter(
                Athlete.group_id == group_id
            )
        if statuses:
            query = query.filter(Charge.status.in_(statuses))
        return query

    def get_all(
        self,
        tenant_id: UUID,
        skip: int = 0,
        limit: int = 100,
        academy_id: UUID | None = None,
        period: str | None = None,
        group_id: UUID | None = None,
        athlete_id: UUID | None = None,
        statuses: list[str] | None = None,
        order_by: str | None = None,
    ) -> list[Charge]:
        query = self._filtered(tenant_id, academy_id, period, group_id, athlete_id, statuses)
        query = apply_order_by(query, Charge, order_by, allowed_fields=CHARGE_SORT_FIELDS)
        return query.offset(skip).limit(limit).all()

    def count(
        self,
        tenant_id: UUID,
        academy_id: UUID | None = None,
        period: str | None = None,
        group_id: UUID | None = None,
        athlete_id: UUID | None = None,
        statuses: list[str] | None = None,
    ) -> int:
        return self._filtered(
            tenant_id, academy_id, period, group_id, athlete_id, statuses
        ).count()

    def get_by_id(self, charge_id: UUID, tenant_id: UUID | None = None) -> Charge | None:
        query = self.db.query(Charge).filter(Charge.id == charge_id)
        if tenant_id is not None:
            query = query.filter(Charge.tenant_id == tenant_id)
        return query.first()

    def get_by_checkout_id(self, checkout_id: str) -> Charge | None:
        return self.db.query(Charge).filter(Charge.provider_checkout_id == checkout_id).first()

    def billed_athlete_ids(
        self, academy_id: UUID, period: str, billing_item_id: UUID | None = None
    ) -> set[UUID]:
        """Athletes holding a non-cancelled charge for ``period`` in ``academy_id``.

        With ``billing_item_id`` only charges for that item count.
        """
        query = self.db.query(Charge.athlete_id).filter(
            Charge.academy_id == academy_id,
            Charge.period == period,
            Charge.status.in_(OPEN_OR_SETTLED_STATUSES),
        )
        if billing_item_id is not None:
            query = query.filter(Charge.billing_item_id == billing_item_id)
        rows = query.distinct().all()
        return {row[0] for row in rows}

    def get_open_for_athlete_period(self, athlete_id: UUID, period: str) -> list[Charge]:
        """Pending and overdue charges of ``athlete_id`` for ``period``."""
        return (
            self.db.query(Charge)
            .filter(
                Charge.athlete_id == athlete_id,
                Charge.period == period,
                Charge.status.in_([ChargeStatus.PENDING.value, ChargeStatus.OVERDUE.value]),
            )
            .all()
        )

    def get_pending_due_by(self, day: date, limit: int = 500) -> list[Charge]:
        """Pending charges whose due date is on or before ``day``."""
        return (
            self.db.query(Charge)
            .filter(
                Charge.status == ChargeStatus.PENDING.value,
                Charge.due_date.isnot(None),
                Charge.due_date <= day,
            )
            .order_by(Charge.due_date.asc())
            .limit(limit)
            .all()
        )

    def create(self, data: ChargeCreate, tenant_id: UUID) -> Charge:
        values = data.model_dump()
        values["status"] = data.status.value
        values["currency"] = data.currency.upper()
        values["payment_method"] = data.payment_method.value if data.payment_method else None
        if data.status == ChargeStatus.PAID:
            values["paid_at"] = data.paid_at or utc_now()
        else:
            values["paid_at"] = None
        charge = Charge(**values, tenant_id=tenant_id)
        self.db.add(charge)
        self.db.commit()
        self.db.refresh(charge)
        return charge

    def delete(self, charge_id: UUID, tenant_id: UUID) -> bool:
        charge = self.get_by_id(charge_id, tenant_id)
        if not charge:
            return False
        self.db.delete(charge)
        self.db.commit()
        return True
