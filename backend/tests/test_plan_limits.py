"""Tests for plan resource limits and plan changes."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.errors import NotFoundError, PlanLimitError
from app.models.email_log import EmailLog
from app.models.notification import Notification
from app.repositories.plan_repository import PlanRepository
from app.repositories.subscription_repository import SubscriptionRepository
from app.services.plan_limits import (
    RESOURCE_ACADEMIES,
    RESOURCE_GROUPS,
    assert_within_plan_limits,
    check_plan_limit_violations,
    get_remaining_limits,
    upgrade_target,
)
from app.services.subscription_service import PlanLimitViolationError, SubscriptionService


def _set_plan(db_session, tenant_id, code: str, **fields):  # type: ignore[no-untyped-def]
    repo = SubscriptionRepository(db_session)
    subscription = repo.get_or_create_for_tenant(tenant_id)
    subscription.plan_id = PlanRepository(db_session).get_by_code(code).id
    for key, value in fields.items():
        setattr(subscription, key, value)
    return repo.save(subscription)


@pytest.fixture
def academy(make_academy):
    return make_academy()


@pytest.fixture
def four_groups(academy, make_group):
    return [make_group(academy, name=f"Group {i}") for i in range(4)]


class TestDefaults:
    def test_default_plans_seeded(self, db_session):
        plans = PlanRepository(db_session).get_all()
        assert [p.code for p in plans] == ["free", "pro", "premium"]
        free = plans[0]
        assert (free.athlete_limit, free.class_limit, free.group_limit, free.academy_limit) == (
            50,
            10,
            3,
            1,
        )
        assert plans[2].athlete_limit is None

    def test_ensure_defaults_is_idempotent(self, db_session):
        assert PlanRepository(db_session).ensure_defaults() == 0

    def test_new_tenant_starts_on_free(self, db_session, default_tenant_id):
        repo = SubscriptionRepository(db_session)
        subscription = repo.get_or_create_for_tenant(default_tenant_id)
        assert repo.get_plan(subscription).code == "free"
        assert subscription.status == "active"

    def test_upgrade_target(self):
        assert upgrade_target("free") == "pro"
        assert upgrade_target("pro") == "premium"


class TestViolations:
    def test_no_violations_within_limits(self, db_session, academy, make_group, default_tenant_id):
        make_group(academy)
        free = PlanRepository(db_session).get_by_code("free")
        assert check_plan_limit_violations(db_session, default_tenant_id, free) == []

    def test_at_limit_is_not_a_violation(
        self, db_session, academy, make_group, default_tenant_id
    ):
        for i in range(3):
            make_group(academy, name=f"Group {i}")
        free = PlanRepository(db_session).get_by_code("free")
        assert check_plan_limit_violations(db_session, default_tenant_id, free) == []

    def test_groups_over_limit(self, db_session, academy, four_groups, default_tenant_id):
        free = PlanRepository(db_session).get_by_code("free")

        [violation] = check_plan_limit_violations(db_session, default_tenant_id, free)

        assert violation["resource"] == RESOURCE_GROUPS
        assert violation["current_count"] == 4
        assert violation["limit"] == 3
        assert violation["academy_id"] == academy.id
        assert violation["academy_name"] == "Flip Club"
        assert [item["name"] for item in violation["items"]] == [
            "Group 0",
            "Group 1",
            "Group 2",
            "Group 3",
        ]

    def test_academies_over_limit(self, db_session, academy, make_academy, default_tenant_id):
        make_academy(slug="second-club", name="Second Club")
        free = PlanRepository(db_session).get_by_code("free")

        violations = check_plan_limit_violations(db_session, default_tenant_id, free)

        assert [v["resource"] for v in violations] == [RESOURCE_ACADEMIES]
        assert violations[0]["academy_id"] is None

    def test_unlimited_plan(self, db_session, four_groups, default_tenant_id):
        premium = PlanRepository(db_session).get_by_code("premium")
        assert check_plan_limit_violations(db_session, default_tenant_id, premium) == []


class TestAssertWithinLimits:
    def test_raises_at_limit(self, db_session, academy, make_group, default_tenant_id):
        for i in range(3):
            make_group(academy, name=f"Group {i}")

        with pytest.raises(PlanLimitError) as exc_info:
            assert_within_plan_limits(db_session, default_tenant_id, RESOURCE_GROUPS, academy.id)

        assert exc_info.value.status_code == 402
        assert exc_info.value.details["upgrade_to"] == "pro"
        assert exc_info.value.details["current_count"] == 3

    def test_allows_below_limit(self, db_session, academy, default_tenant_id):
        assert_within_plan_limits(db_session, default_tenant_id, RESOURCE_GROUPS, academy.id)

    def test_unknown_academy(self, db_session, default_tenant_id):
        with pytest.raises(NotFoundError):
            assert_within_plan_limits(
                db_session, default_tenant_id, RESOURCE_GROUPS, uuid.uuid4()
            )

    def test_remaining_limits(self, db_session, academy, make_group, default_tenant_id):
        make_group(academy)

        limits = get_remaining_limits(db_session, default_tenant_id)

        assert limits["plan_code"] == "free"
        assert limits["academies"] == {"current": 1, "limit": 1, "remaining": 0}
        [entry] = limits["per_academy"]
        assert entry["groups"] == {"current": 1, "limit": 3, "remaining": 2}
        assert entry["athletes"]["remaining"] == 50


class TestChangePlanService:
    def test_refused_without_force(self, db_session, four_groups, default_tenant_id):
        _set_plan(db_session, default_tenant_id, "pro")

        with pytest.raises(PlanLimitViolationError) as exc_info:
            SubscriptionService(db_session).change_plan(default_tenant_id, "free")

        assert exc_info.value.details["plan_code"] == "free"
        assert len(exc_info.value.violations) == 1
        subscription, plan = SubscriptionService(db_session).get(default_tenant_id)
        assert plan.code == "pro"

    def test_forced_change(self, db_session, four_groups, default_tenant_id):
        _set_plan(db_session, default_tenant_id, "pro")

        result = SubscriptionService(db_session).change_plan(
            default_tenant_id, "free", force=True, actor_id="owner-1"
        )

        assert result.plan.code == "free"
        assert result.previous_plan_code == "pro"
        assert result.forced is True
        assert result.violations[0]["resource"] == "groups"
        assert result.email_log_id is not None
        notification = db_session.query(Notification).one()
        assert notification.category == "plan"
        log = db_session.query(EmailLog).one()
        assert log.to_email == "owner@example.com"
        assert log.status == "pending"
        assert "groups 4 / 3" in log.html_body

    def test_upgrade_has_no_violations(self, db_session, four_groups, default_tenant_id):
        result = SubscriptionService(db_session).change_plan(default_tenant_id, "pro")

        assert result.plan.code == "pro"
        assert result.violations == []
        assert result.forced is False
        assert result.email_log_id is None

    def test_same_plan_is_noop(self, db_session, default_tenant_id):
        result = SubscriptionService(db_session).change_plan(default_tenant_id, "free")
        assert result.previous_plan_code == "free"
        assert result.plan.code == "free"

    def test_downgrade_to_free_cancels_stripe_at_period_end(self, db_session, default_tenant_id):
        _set_plan(db_session, default_tenant_id, "pro", stripe_subscription_id="sub_123")
        provider = MagicMock()

        result = SubscriptionService(db_session, provider=provider).change_plan(
            default_tenant_id, "free"
        )

        provider.set_cancel_at_period_end.assert_called_once_with("sub_123")
        assert result.subscription.cancel_at_period_end is True


class TestBillingAPI:
    def test_subscription(self, client):
        response = client.get("/v1/billing/subscription")
        assert response.status_code == 200
        assert response.json()["plan_code"] == "free"

    def test_limits(self, client, academy):
        response = client.get("/v1/billing/limits")
        assert response.status_code == 200
        data = response.json()
        assert data["academies"]["current"] == 1
        assert data["per_academy"][0]["academy_name"] == "Flip Club"

    def test_plans(self, client):
        response = client.get("/v1/plans/")
        assert response.status_code == 200
        assert [p["code"] for p in response.json()] == ["free", "pro", "premium"]

    def test_change_plan_refused(self, client, db_session, four_groups, default_tenant_id):
        _set_plan(db_session, default_tenant_id, "pro")

        response = client.post("/v1/billing/change_plan", json={"plan_code": "free"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "PLAN_LIMIT_VIOLATIONS"
        assert body["details"]["violations"][0]["resource"] == "groups"
        assert body["details"]["violations"][0]["current_count"] == 4

    def test_change_plan_forced(self, client, db_session, four_groups, default_tenant_id):
        _set_plan(db_session, default_tenant_id, "pro")

        with patch(
            "app.routers.billing.enqueue_deliver_email", new_callable=AsyncMock
        ) as mock_enqueue:
            response = client.post(
                "/v1/billing/change_plan", json={"plan_code": "free", "force": True}
            )

        assert response.status_code == 200
        body = response.json()
        assert body["forced"] is True
        assert body["previous_plan_code"] == "pro"
        assert body["subscription"]["plan_code"] == "free"
        assert len(body["violations"]) == 1
        assert len(body["violations"][0]["items"]) == 4
        mock_enqueue.assert_awaited_once()

    def test_change_plan_survives_queue_outage(
        self, client, db_session, four_groups, default_tenant_id
    ):
        _set_plan(db_session, default_tenant_id, "pro")

        with patch(
            "app.routers.billing.enqueue_deliver_email",
            new_callable=AsyncMock,
            side_effect=ConnectionError("redis down"),
        ):
            response = client.post(
                "/v1/billing/change_plan", json={"plan_code": "free", "force": True}
            )

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.query(EmailLog).one().status == "pending"

    def test_unknown_plan_code(self, client):
        response = client.post("/v1/billing/change_plan", json={"plan_code": "gold"})
        assert response.status_code == 400

    def test_create_group_over_limit_returns_402(self, client, academy, make_group):
        for i in range(3):
            make_group(academy, name=f"Group {i}")

        response = client.post(
            "/v1/groups/", json={"academy_id": str(academy.id), "name": "Group 4"}
        )

        assert response.status_code == 402
        assert response.json()["error"] == "LIMIT_REACHED"
        assert response.json()["details"]["resource"] == "groups"

    def test_create_second_academy_on_free_returns_402(self, client, academy):
        response = client.post("/v1/academies/", json={"name": "Second", "slug": "second"})
        assert response.status_code == 402

    def test_invoices_empty(self, client):
        response = client.get("/v1/billing/invoices")
        assert response.status_code == 200
        assert response.json() == []

    def test_portal_without_customer(self, client):
        response = client.post("/v1/billing/portal")
        assert response.status_code == 400

    def test_checkout(self, client, db_session):
        pro = PlanRepository(db_session).get_by_code("pro")
        pro.stripe_price_id = "price_pro"
        db_session.commit()

        provider = MagicMock()
        provider.create_customer.return_value = "cus_1"
        provider.create_subscription_checkout.return_value = MagicMock(
            checkout_url="https://checkout.stripe.test/sub"
        )
        with patch("app.services.subscription_service.get_payment_provider", return_value=provider):
            response = client.post("/v1/billing/checkout", json={"plan_code": "pro"})

        assert response.status_code == 200
        assert response.json()["url"] == "https://checkout.stripe.test/sub"
        provider.create_customer.assert_called_once()
        assert provider.create_subscription_checkout.call_args.kwargs["price_id"] == "price_pro"
