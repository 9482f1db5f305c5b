"""Tests for monthly charge generation, bulk charges and current-period re-pricing."""

import uuid
from datetime import date
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from app.core.errors import NotFoundError, ValidationError
from app.models.charge import Charge, ChargeStatus
from app.repositories.charge_repository import ChargeRepository
from app.schemas.athlete import AthleteUpdate
from app.schemas.charge import BulkChargeRequest
from app.services.athlete_service import update_athlete
from app.services.charge_generation import (
    MonthlyChargeGenerator,
    current_period,
    effective_fee,
    generation_key,
    monthly_fee_label,
    parse_period,
    period_due_date,
    period_label,
    sync_current_period_charges,
)
from app.services.charge_status import ChargeStatusService


@pytest.fixture
def academy(make_academy):
    return make_academy()


@pytest.fixture
def generator(db_session):
    return MonthlyChargeGenerator(db_session)


def _charges(db_session, period: str = "2025-11") -> list[Charge]:
    db_session.expire_all()
    return (
        db_session.query(Charge)
        .filter(Charge.period == period)
        .order_by(Charge.amount_cents.asc())
        .all()
    )


class TestPeriodHelpers:
    def test_parse_period(self):
        assert parse_period("2025-11") == (2025, 11)

    @pytest.mark.parametrize("value", ["2025-13", "2025-00", "25-11", "2025/11", "november"])
    def test_parse_period_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_period(value)

    def test_due_date_is_last_day_of_month(self):
        assert period_due_date("2025-11") == date(2025, 11, 30)
        assert period_due_date("2024-02") == date(2024, 2, 29)
        assert period_due_date("2025-12") == date(2025, 12, 31)

    def test_labels(self):
        assert period_label("2025-11") == "November 2025"
        assert monthly_fee_label("Competition", "2025-11") == "Competition monthly fee - November 2025"

    def test_current_period(self):
        assert current_period(date(2026, 3, 15)) == "2026-03"

    def test_generation_key(self):
        academy_id, athlete_id = uuid.uuid4(), uuid.uuid4()
        assert generation_key(academy_id, athlete_id, "2025-11") == f"{academy_id}:{athlete_id}:2025-11"


class TestEffectiveFee:
    def test_custom_override_wins(self):
        group = SimpleNamespace(monthly_fee_cents=5000)
        membership = SimpleNamespace(custom_fee_cents=2000)
        item = SimpleNamespace(amount_cents=4000)
        assert effective_fee(group, membership, item) == 2000

    def test_group_fee_before_item(self):
        group = SimpleNamespace(monthly_fee_cents=5000)
        membership = SimpleNamespace(custom_fee_cents=None)
        item = SimpleNamespace(amount_cents=4000)
        assert effective_fee(group, membership, item) == 5000

    def test_falls_back_to_billing_item(self):
        group = SimpleNamespace(monthly_fee_cents=None)
        item = SimpleNamespace(amount_cents=4000)
        assert effective_fee(group, None, item) == 4000

    def test_zero_override_is_kept(self):
        group = SimpleNamespace(monthly_fee_cents=5000)
        membership = SimpleNamespace(custom_fee_cents=0)
        assert effective_fee(group, membership) == 0

    def test_nothing_configured(self):
        assert effective_fee(SimpleNamespace(monthly_fee_cents=None)) is None


class TestGenerateMonthly:
    def test_override_and_group_fee(
        self, db_session, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        group = make_group(academy, monthly_fee_cents=5000)
        make_athlete(academy, "Ana", group, custom_fee_cents=2000)
        make_athlete(academy, "Bea", group)
        make_athlete(academy, "Cleo", group)

        result = generator.generate(default_tenant_id, academy.id, "2025-11")

        assert result.created == 3
        assert result.skipped == 0
        assert len(result.charge_ids) == 3
        charges = _charges(db_session)
        assert [c.amount_cents for c in charges] == [2000, 5000, 5000]
        for charge in charges:
            assert charge.status == ChargeStatus.PENDING.value
            assert charge.due_date == date(2025, 11, 30)
            assert charge.label == "Competition monthly fee - November 2025"
            assert charge.currency == "EUR"
            assert charge.generation_key == f"{academy.id}:{charge.athlete_id}:2025-11"

    def test_second_run_creates_nothing(
        self, db_session, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        group = make_group(academy, monthly_fee_cents=5000)
        make_athlete(academy, "Ana", group)
        make_athlete(academy, "Bea", group)

        first = generator.generate(default_tenant_id, academy.id, "2025-11")
        second = generator.generate(default_tenant_id, academy.id, "2025-11")

        assert first.created == 2
        assert second.created == 0
        assert second.skipped == 2
        assert len(_charges(db_session)) == 2

    def test_without_skip_duplicates_bills_again(
        self, db_session, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        group = make_group(academy, monthly_fee_cents=5000)
        make_athlete(academy, "Ana", group)

        generator.generate(default_tenant_id, academy.id, "2025-11")
        again = generator.generate(default_tenant_id, academy.id, "2025-11", skip_duplicates=False)

        assert again.created == 1
        charges = _charges(db_session)
        assert len(charges) == 2
        assert sum(1 for c in charges if c.generation_key is None) == 1

    def test_concurrent_insert_is_counted_as_skipped(
        self, db_session, generator, academy, make_group, make_athlete, make_charge,
        default_tenant_id,
    ):
        group = make_group(academy, monthly_fee_cents=5000)
        ana = make_athlete(academy, "Ana", group)
        make_athlete(academy, "Bea", group)
        # A charge committed by another run after this run read the billed athletes
        make_charge(ana, generation_key=generation_key(academy.id, ana.id, "2025-11"))

        with patch.object(ChargeRepository, "billed_athlete_ids", return_value=set()):
            result = generator.generate(default_tenant_id, academy.id, "2025-11")

        assert result.created == 1
        assert result.skipped == 1
        assert len(_charges(db_session)) == 2

    def test_cancelled_charge_can_be_regenerated(
        self, db_session, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        group = make_group(academy, monthly_fee_cents=5000)
        make_athlete(academy, "Ana", group)
        first = generator.generate(default_tenant_id, academy.id, "2025-11")

        charge = db_session.get(Charge, first.charge_ids[0])
        ChargeStatusService(db_session).transition(charge, ChargeStatus.CANCELLED)
        db_session.commit()
        assert charge.generation_key is None

        again = generator.generate(default_tenant_id, academy.id, "2025-11")
        assert again.created == 1

    def test_skips_athletes_without_group_or_fee(
        self, db_session, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        no_fee = make_group(academy, name="Recreational")
        make_athlete(academy, "Ana")
        make_athlete(academy, "Bea", no_fee)

        result = generator.generate(default_tenant_id, academy.id, "2025-11")

        assert result.created == 0
        assert result.skipped == 2

    def test_skips_zero_override(
        self, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        group = make_group(academy, monthly_fee_cents=5000)
        make_athlete(academy, "Ana", group, custom_fee_cents=0)
        make_athlete(academy, "Bea", group)

        result = generator.generate(default_tenant_id, academy.id, "2025-11")

        assert result.created == 1
        assert result.skipped == 1

    def test_skips_inactive_athletes(
        self, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        group = make_group(academy, monthly_fee_cents=5000)
        make_athlete(academy, "Ana", group, status="inactive")

        result = generator.generate(default_tenant_id, academy.id, "2025-11")

        assert result.created == 0
        assert result.skipped == 0

    def test_billing_item_fee_and_currency(
        self, db_session, generator, academy, make_group, make_billing_item, make_athlete,
        default_tenant_id,
    ):
        item = make_billing_item(academy, amount_cents=4500, currency="USD")
        group = make_group(academy, billing_item_id=item.id)
        make_athlete(academy, "Ana", group)

        generator.generate(default_tenant_id, academy.id, "2025-11")

        [charge] = _charges(db_session)
        assert charge.amount_cents == 4500
        assert charge.currency == "USD"
        assert charge.billing_item_id == item.id

    def test_restricted_to_group(
        self, db_session, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        competition = make_group(academy, monthly_fee_cents=5000)
        beginners = make_group(academy, name="Beginners", monthly_fee_cents=3000)
        make_athlete(academy, "Ana", competition)
        make_athlete(academy, "Bea", beginners)

        result = generator.generate(
            default_tenant_id, academy.id, "2025-11", group_id=beginners.id
        )

        assert result.created == 1
        [charge] = _charges(db_session)
        assert charge.amount_cents == 3000

    def test_scope_skips_athlete_who_moved_group(
        self, db_session, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        group_a = make_group(academy, "A", monthly_fee_cents=5000)
        group_b = make_group(academy, "B", monthly_fee_cents=3000)
        athlete = make_athlete(academy, "Ana", group_a)
        update_athlete(db_session, athlete.id, AthleteUpdate(group_id=group_b.id), default_tenant_id)

        scoped_to_a = generator.generate(default_tenant_id, academy.id, "2025-11", group_id=group_a.id)
        scoped_to_b = generator.generate(default_tenant_id, academy.id, "2025-11", group_id=group_b.id)

        assert scoped_to_a.created == 0
        assert scoped_to_b.created == 1
        [charge] = _charges(db_session)
        assert (charge.amount_cents, charge.label) == (3000, "B monthly fee - November 2025")

    def test_scope_skips_athlete_removed_from_group(
        self, db_session, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        group = make_group(academy, "A", monthly_fee_cents=5000)
        athlete = make_athlete(academy, "Ana", group)
        update_athlete(db_session, athlete.id, AthleteUpdate(group_id=None), default_tenant_id)

        result = generator.generate(default_tenant_id, academy.id, "2025-11", group_id=group.id)

        assert result.created == 0
        assert _charges(db_session) == []

    def test_scope_ignores_leftover_membership(
        self, db_session, generator, academy, make_group, make_athlete, default_tenant_id
    ):
        group = make_group(academy, "A", monthly_fee_cents=5000)
        athlete = make_athlete(academy, "Ana", group)
        # Membership row kept, athlete no longer assigned to the group
        athlete.group_id = None
        db_session.commit()

        result = generator.generate(default_tenant_id, academy.id, "2025-11", group_id=group.id)

        assert result.created == 0

    def test_unknown_academy(self, generator, default_tenant_id):
        with pytest.raises(NotFoundError):
            generator.generate(default_tenant_id, uuid.uuid4(), "2025-11")

    def test_group_of_other_academy(
        self, generator, academy, make_academy, make_group, default_tenant_id
    ):
        other = make_academy(slug="other-club")
        group = make_group(other, monthly_fee_cents=5000)
        with pytest.raises(NotFoundError):
            generator.generate(default_tenant_id, academy.id, "2025-11", group_id=group.id)


class TestBulkCharges:
    def test_creates_charge_per_member(
        self, db_session, generator, academy, make_group, make_billing_item, make_athlete,
        default_tenant_id,
    ):
        item = make_billing_item(academy, amount_cents=1500, name="Competition kit")
        group = make_group(academy)
        make_athlete(academy, "Ana", group)
        make_athlete(academy, "Bea", group)

        request = BulkChargeRequest(
            academy_id=academy.id, group_id=group.id, billing_item_id=item.id, period="2025-11"
        )
        result = generator.create_bulk(default_tenant_id, request)

        assert result.created == 2
        charges = _charges(db_session)
        assert {c.amount_cents for c in charges} == {1500}
        assert {c.label for c in charges} == {"Competition kit - November 2025"}

    def test_skips_existing_item_charge(
        self, generator, academy, make_group, make_billing_item, make_athlete, default_tenant_id
    ):
        item = make_billing_item(academy, amount_cents=1500)
        group = make_group(academy)
        make_athlete(academy, "Ana", group)
        request = BulkChargeRequest(
            academy_id=academy.id,
            group_id=group.id,
            billing_item_id=item.id,
            period="2025-11",
            amount_cents=1200,
            label="Trip",
        )

        generator.create_bulk(default_tenant_id, request)
        second = generator.create_bulk(default_tenant_id, request)

        assert second.created == 0
        assert second.skipped == 1

    def test_existing_charge_for_other_item_does_not_block(
        self, db_session, generator, academy, make_group, make_billing_item, make_athlete,
        make_charge, default_tenant_id,
    ):
        item = make_billing_item(academy, amount_cents=1500, name="Competition kit")
        group = make_group(academy, monthly_fee_cents=5000)
        athlete = make_athlete(academy, "Ana", group)
        make_charge(athlete, amount_cents=5000, period="2025-11")

        request = BulkChargeRequest(
            academy_id=academy.id, group_id=group.id, billing_item_id=item.id, period="2025-11"
        )
        result = generator.create_bulk(default_tenant_id, request)

        assert result.created == 1
        repo = ChargeRepository(db_session)
        assert repo.billed_athlete_ids(academy.id, "2025-11", billing_item_id=item.id) == {athlete.id}

    def test_inactive_item_rejected(
        self, generator, academy, make_group, make_billing_item, default_tenant_id
    ):
        item = make_billing_item(academy, is_active=False)
        group = make_group(academy)
        request = BulkChargeRequest(
            academy_id=academy.id, group_id=group.id, billing_item_id=item.id, period="2025-11"
        )
        with pytest.raises(ValidationError):
            generator.create_bulk(default_tenant_id, request)


class TestSyncCurrentPeriod:
    def test_reprices_open_charges(
        self, db_session, academy, make_group, make_athlete, make_charge
    ):
        old = make_group(academy, name="Beginners", monthly_fee_cents=3000)
        new = make_group(academy, name="Competition", monthly_fee_cents=6000)
        athlete = make_athlete(academy, "Ana", old)
        pending = make_charge(athlete, amount_cents=3000, period="2026-10")
        paid = make_charge(athlete, amount_cents=3000, period="2026-10", status="paid")
        previous = make_charge(athlete, amount_cents=3000, period="2026-09")

        athlete.group_id = new.id
        updated = sync_current_period_charges(db_session, athlete, new, date(2026, 10, 19))
        db_session.commit()

        assert updated == 1
        for charge in (pending, paid, previous):
            db_session.refresh(charge)
        assert pending.amount_cents == 6000
        assert pending.label == "Competition monthly fee - October 2026"
        assert paid.amount_cents == 3000
        assert previous.amount_cents == 3000

    def test_zero_fee_group_leaves_charges(
        self, db_session, academy, make_group, make_athlete, make_charge
    ):
        old = make_group(academy, monthly_fee_cents=3000)
        free = make_group(academy, name="Trial")
        athlete = make_athlete(academy, "Ana", old)
        charge = make_charge(athlete, amount_cents=3000, period="2026-10")

        assert sync_current_period_charges(db_session, athlete, free, date(2026, 10, 19)) == 0
        db_session.refresh(charge)
        assert charge.amount_cents == 3000
