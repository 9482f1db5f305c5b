"""Monthly charge generation for academies.

Each active athlete is billed once per period at the effective fee of their
group: the membership's ``custom_fee_cents`` override, else the group's
``monthly_fee_cents``, else the amount of the group's billing item. Athletes
without a group or with no positive fee are skipped.

Generated charges carry a ``generation_key`` backed by a unique index, and
each insert runs in its own savepoint, so two concurrent runs for the same
period cannot bill an athlete twice: the losing insert counts as skipped.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.academy import Academy
from app.models.athlete import Athlete
from app.models.billing_item import BillingItem
from app.models.charge import Charge, ChargeStatus
from app.models.group import Group, GroupMembership
from app.repositories.academy_repository import AcademyRepository
from app.repositories.athlete_repository import AthleteRepository
from app.repositories.billing_item_repository import BillingItemRepository
from app.repositories.charge_repository import ChargeRepository
from app.repositories.group_repository import GroupRepository
from app.schemas.charge import BulkChargeRequest

logger = logging.getLogger(__name__)


def parse_period(period: str) -> tuple[int, int]:
    """Split ``"YYYY-MM"`` into ``(year, month)``."""
    try:
        year_str, month_str = period.split("-")
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise ValidationError(f"Invalid period '{period}', expected YYYY-MM") from None
    if len(year_str) != 4 or not 1 <= month <= 12:
        raise ValidationError(f"Invalid period '{period}', expected YYYY-MM")
    return year, month


def period_due_date(period: str) -> date:
    """Last calendar day of ``period``."""
    year, month = parse_period(period)
    return date(year, month, calendar.monthrange(year, month)[1])


def period_label(period: str) -> str:
    """``"2025-11"`` -> ``"November 2025"``."""
    year, month = parse_period(period)
    return f"{calendar.month_name[month]} {year}"


def current_period(today: date | None = None) -> str:
    today = today or date.today()
    return f"{today.year:04d}-{today.month:02d}"


def monthly_fee_label(group_name: str, period: str) -> str:
    return f"{group_name} monthly fee - {period_label(period)}"


def generation_key(academy_id: UUID, athlete_id: UUID, period: str) -> str:
    return f"{academy_id}:{athlete_id}:{period}"


def effective_fee(
    group: Group,
    membership: GroupMembership | None = None,
    billing_item: BillingItem | None = None,
) -> int | None:
    """Monthly fee in cents for a member of ``group``; None when nothing is set."""
    if membership is not None and membership.custom_fee_cents is not None:
        return int(membership.custom_fee_cents)
    if group.monthly_fee_cents is not None:
        return int(group.monthly_fee_cents)
    if billing_item is not None:
        return int(billing_item.amount_cents)
    return None


@dataclass
class GenerationResult:
    created: int = 0
    skipped: int = 0
    charge_ids: list[UUID] = field(default_factory=list)


class MonthlyChargeGenerator:
    def __init__(self, db: Session):
        self.db = db
        self.academy_repo = AcademyRepository(db)
        self.athlete_repo = AthleteRepository(db)
        self.group_repo = GroupRepository(db)
        self.item_repo = BillingItemRepository(db)
        self.charge_repo = ChargeRepository(db)

    def _get_academy(self, academy_id: UUID, tenant_id: UUID) -> Academy:
        academy = self.academy_repo.get_by_id(academy_id, tenant_id)
        if academy is None:
            raise NotFoundError("Academy")
        return academy

    def _get_group(self, group_id: UUID, academy: Academy) -> Group:
        group = self.group_repo.get_by_id(group_id, academy.tenant_id)  # type: ignore[arg-type]
        if group is None or group.academy_id != academy.id:
            raise NotFoundError("Group")
        return group

    def _candidates(
        self, academy: Academy, group_id: UUID | None
    ) -> list[tuple[Athlete, Group | None, GroupMembership | None]]:
        if group_id is not None:
            group = self._get_group(group_id, academy)
            return [
                (athlete, group, membership)
                for athlete, membership in self.group_repo.get_active_members(group_id)
            ]

        athletes = self.athlete_repo.get_active_for_academy(academy.id)  # type: ignore[arg-type]
        groups = self.group_repo.get_by_ids({a.group_id for a in athletes if a.group_id})
        memberships = self.group_repo.get_memberships_for_athletes([a.id for a in athletes])
        candidates: list[tuple[Athlete, Group | None, GroupMembership | None]] = []
        for athlete in athletes:
            group = groups.get(athlete.group_id) if athlete.group_id else None  # type: ignore[arg-type]
            membership = (
                memberships.get((group.id, athlete.id)) if group is not None else None  # type: ignore[arg-type]
            )
            candidates.append((athlete, group, membership))
        return candidates

    def _insert(self, charge: Charge) -> bool:
        """Insert ``charge`` in a savepoint; False when its generation key is taken."""
        try:
            with self.db.begin_nested():
                self.db.add(charge)
        except IntegrityError:
            logger.warning(
                "Charge for athlete %s period %s already generated concurrently",
                charge.athlete_id,
                charge.period,
            )
            return False
        return True

    def generate(
        self,
        tenant_id: UUID,
        academy_id: UUID,
        period: str,
        group_id: UUID | None = None,
        skip_duplicates: bool = True,
    ) -> GenerationResult:
        """Create one pending monthly charge per eligible athlete for ``period``."""
        academy = self._get_academy(academy_id, tenant_id)
        due_date = period_due_date(period)
        candidates = self._candidates(academy, group_id)
        items = self.item_repo.get_by_ids(
            {g.billing_item_id for _, g, _ in candidates if g is not None and g.billing_item_id}
        )
        already_billed = (
            self.charge_repo.billed_athlete_ids(academy_id, period) if skip_duplicates else set()
        )

        result = GenerationResult()
        for athlete, group, membership in candidates:
            if group is None:
                result.skipped += 1
                continue
            item = items.get(group.billing_item_id) if group.billing_item_id else None  # type: ignore[arg-type]
            fee = effective_fee(group, membership, item)
            if not fee or fee <= 0:
                logger.warning(
                    "Skipping athlete %s: no monthly fee configured for group %s",
                    athlete.id,
                    group.id,
                )
                result.skipped += 1
                continue
            if athlete.id in already_billed:
                result.skipped += 1
                continue

            charge = Charge(
                tenant_id=academy.tenant_id,
                academy_id=academy.id,
                athlete_id=athlete.id,
                billing_item_id=group.billing_item_id,
                label=monthly_fee_label(str(group.name), period),
                amount_cents=fee,
                currency=str(item.currency if item is not None else academy.currency),
                period=period,
                due_date=due_date,
                status=ChargeStatus.PENDING.value,
                generation_key=(
                    generation_key(academy.id, athlete.id, period)  # type: ignore[arg-type]
                    if skip_duplicates
                    else None
                ),
            )
            if self._insert(charge):
                result.created += 1
                result.charge_ids.append(charge.id)  # type: ignore[arg-type]
            else:
                result.skipped += 1

        self.db.commit()
        logger.info(
            "Generated %d charges for academy %s period %s (%d skipped)",
            result.created,
            academy_id,
            period,
            result.skipped,
        )
        return result

    def create_bulk(self, tenant_id: UUID, request: BulkChargeRequest) -> GenerationResult:
        """Charge every active member of a group for one billing item.

        Members already holding a non-cancelled charge for the same item and
        period are skipped.
        """
        academy = self._get_academy(request.academy_id, tenant_id)
        group = self._get_group(request.group_id, academy)
        item = self.item_repo.get_by_id(request.billing_item_id, tenant_id)
        if item is None or item.academy_id != academy.id:
            raise NotFoundError("Billing item")
        if not item.is_active:
            raise ValidationError("Billing item is inactive")

        due_date = request.due_date or period_due_date(request.period)
        label = request.label or f"{item.name} - {period_label(request.period)}"
        amount = request.amount_cents if request.amount_cents is not None else item.amount_cents

        existing = self.charge_repo.billed_athlete_ids(
            academy.id, request.period, billing_item_id=item.id  # type: ignore[arg-type]
        )

        result = GenerationResult()
        for athlete, _membership in self.group_repo.get_active_members(group.id):  # type: ignore[arg-type]
            if athlete.id in existing:
                result.skipped += 1
                continue
            charge = Charge(
                tenant_id=academy.tenant_id,
                academy_id=academy.id,
                athlete_id=athlete.id,
                billing_item_id=item.id,
                label=label,
                amount_cents=amount,
                currency=item.currency,
                period=request.period,
                due_date=due_date,
                status=ChargeStatus.PENDING.value,
            )
            self.db.add(charge)
            self.db.flush()
            result.created += 1
            result.charge_ids.append(charge.id)  # type: ignore[arg-type]

        self.db.commit()
        logger.info(
            "Created %d bulk charges for group %s item %s (%d skipped)",
            result.created,
            group.id,
            item.id,
            result.skipped,
        )
        return result


def sync_current_period_charges(
    db: Session, athlete: Athlete, group: Group, today: date | None = None
) -> int:
    """Re-price the athlete's pending/overdue charges of the current period.

    Called after an athlete moves to ``group``. Nothing changes when the new
    group has no positive fee. Returns the number of charges updated; the
    caller commits.
    """
    period = current_period(today)
    charges = [
        c
        for c in ChargeRepository(db).get_open_for_athlete_period(athlete.id, period)  # type: ignore[arg-type]
        if c.academy_id == athlete.academy_id
    ]
    if not charges:
        return 0

    group_repo = GroupRepository(db)
    membership = group_repo.get_membership(group.id, athlete.id)  # type: ignore[arg-type]
    item = (
        BillingItemRepository(db).get_by_id(group.billing_item_id)  # type: ignore[arg-type]
        if group.billing_item_id
        else None
    )
    fee = effective_fee(group, membership, item)
    if not fee or fee <= 0:
        logger.warning(
            "Group %s has no monthly fee; leaving %d charges of athlete %s unchanged",
            group.id,
            len(charges),
            athlete.id,
        )
        return 0

    label = monthly_fee_label(str(group.name), period)
    for charge in charges:
        charge.amount_cents = fee  # type: ignore[assignment]
        charge.label = label  # type: ignore[assignment]
    logger.info("Re-priced %d charges of athlete %s to %d", len(charges), athlete.id, fee)
    return len(charges)
