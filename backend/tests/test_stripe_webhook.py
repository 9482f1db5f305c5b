"""Tests for Stripe webhook processing."""

import json
from unittest.mock import MagicMock, patch

import pytest

from app.models.billing_event import BillingEvent
from app.models.email_log import EmailLog
from app.models.notification import Notification
from app.models.subscription_invoice import SubscriptionInvoice
from app.repositories.plan_repository import PlanRepository
from app.repositories.subscription_repository import SubscriptionRepository
from app.services.stripe_webhook_service import (
    STATUS_DUPLICATE,
    STATUS_IGNORED,
    STATUS_PROCESSED,
    StripeWebhookService,
)


def _event(event_id: str, event_type: str, obj: dict) -> dict:  # type: ignore[type-arg]
    return {"id": event_id, "type": event_type, "data": {"object": obj}}


@pytest.fixture
def service(db_session):
    return StripeWebhookService(db_session)


@pytest.fixture
def subscription(db_session, default_tenant_id):
    repo = SubscriptionRepository(db_session)
    sub = repo.get_or_create_for_tenant(default_tenant_id)
    sub.stripe_customer_id = "cus_1"
    sub.stripe_subscription_id = "sub_1"
    return repo.save(sub)


class TestStripeWebhookService:
    def test_unknown_event_type_is_ignored(self, db_session, service):
        record, status = service.process(_event("evt_1", "customer.created", {"id": "cus_9"}))

        assert status == STATUS_IGNORED
        assert record.status == "processed"

    def test_duplicate_event(self, db_session, service, subscription):
        event = _event(
            "evt_2",
            "customer.subscription.updated",
            {"id": "sub_1", "object": "subscription", "customer": "cus_1", "status": "active"},
        )
        service.process(event)

        _, status = service.process(event)

        assert status == STATUS_DUPLICATE
        assert db_session.query(BillingEvent).count() == 1

    def test_subscription_updated_sets_plan(self, db_session, service, subscription):
        pro = PlanRepository(db_session).get_by_code("pro")
        pro.stripe_price_id = "price_pro"
        db_session.commit()

        _, status = service.process(
            _event(
                "evt_3",
                "customer.subscription.updated",
                {
                    "id": "sub_1",
                    "object": "subscription",
                    "customer": "cus_1",
                    "status": "trialing",
                    "current_period_end": 1767225600,
                    "cancel_at_period_end": False,
                    "items": {"data": [{"price": {"id": "price_pro"}}]},
                },
            )
        )

        assert status == STATUS_PROCESSED
        db_session.refresh(subscription)
        assert subscription.status == "trialing"
        assert subscription.plan_id == pro.id
        assert subscription.current_period_end is not None

    def test_subscription_deleted_reverts_to_free(self, db_session, service, subscription):
        subscription.plan_id = PlanRepository(db_session).get_by_code("pro").id
        db_session.commit()

        service.process(
            _event(
                "evt_4",
                "customer.subscription.deleted",
                {"id": "sub_1", "object": "subscription", "customer": "cus_1"},
            )
        )

        db_session.refresh(subscription)
        assert subscription.status == "canceled"
        assert subscription.stripe_subscription_id is None
        assert SubscriptionRepository(db_session).get_plan(subscription).code == "free"

    def test_invoice_payment_failed(self, db_session, service, subscription, default_tenant_id):
        _, status = service.process(
            _event(
                "evt_5",
                "invoice.payment_failed",
                {
                    "id": "in_1",
                    "customer": "cus_1",
                    "subscription": "sub_1",
                    "status": "open",
                    "amount_due": 2900,
                    "amount_paid": 0,
                    "currency": "eur",
                    "hosted_invoice_url": "https://invoice.stripe.test/in_1",
                },
            )
        )

        assert status == STATUS_PROCESSED
        db_session.refresh(subscription)
        assert subscription.status == "past_due"
        invoice = db_session.query(SubscriptionInvoice).one()
        assert invoice.amount_due_cents == 2900
        assert invoice.tenant_id == default_tenant_id
        assert db_session.query(Notification).one().category == "subscription"
        log = db_session.query(EmailLog).one()
        assert log.template == "subscription_payment_failed"
        assert "https://invoice.stripe.test/in_1" in log.html_body
        event = db_session.query(BillingEvent).one()
        assert event.tenant_id == default_tenant_id

    def test_invoice_paid_restores_active(self, db_session, service, subscription):
        subscription.status = "past_due"
        db_session.commit()

        service.process(
            _event(
                "evt_6",
                "invoice.paid",
                {
                    "id": "in_1",
                    "customer": "cus_1",
                    "subscription": "sub_1",
                    "status": "paid",
                    "amount_due": 2900,
                    "amount_paid": 2900,
                },
            )
        )

        db_session.refresh(subscription)
        assert subscription.status == "active"
        assert db_session.query(SubscriptionInvoice).one().status == "paid"

    def test_checkout_completed_for_charge(
        self, db_session, service, make_academy, make_athlete, make_charge, default_tenant_id
    ):
        charge = make_charge(make_athlete(make_academy()))

        _, status = service.process(
            _event(
                "evt_7",
                "checkout.session.completed",
                {
                    "id": "cs_1",
                    "mode": "payment",
                    "payment_status": "paid",
                    "metadata": {"charge_id": str(charge.id), "tenant_id": str(default_tenant_id)},
                },
            )
        )

        assert status == STATUS_PROCESSED
        db_session.refresh(charge)
        assert charge.status == "paid"
        assert charge.payment_method == "card"
        assert charge.paid_at is not None

    def test_checkout_completed_for_cancelled_charge_is_left_alone(
        self, db_session, service, make_academy, make_athlete, make_charge
    ):
        charge = make_charge(make_athlete(make_academy()), status="cancelled")

        service.process(
            _event(
                "evt_8",
                "checkout.session.completed",
                {"id": "cs_2", "payment_status": "paid", "metadata": {"charge_id": str(charge.id)}},
            )
        )

        db_session.refresh(charge)
        assert charge.status == "cancelled"

    def test_checkout_completed_for_subscription(
        self, db_session, service, default_tenant_id
    ):
        service.process(
            _event(
                "evt_9",
                "checkout.session.completed",
                {
                    "id": "cs_3",
                    "mode": "subscription",
                    "customer": "cus_new",
                    "subscription": "sub_new",
                    "metadata": {"tenant_id": str(default_tenant_id), "plan_code": "premium"},
                },
            )
        )

        repo = SubscriptionRepository(db_session)
        subscription = repo.get_for_tenant(default_tenant_id)
        assert subscription.stripe_customer_id == "cus_new"
        assert subscription.stripe_subscription_id == "sub_new"
        assert repo.get_plan(subscription).code == "premium"

    def test_handler_failure_marks_event_error(self, db_session, service, subscription):
        event = _event(
            "evt_10",
            "customer.subscription.updated",
            {"id": "sub_1", "object": "subscription", "customer": "cus_1", "status": "active"},
        )
        with (
            patch.object(service.subscriptions, "save", side_effect=RuntimeError("db down")),
            pytest.raises(RuntimeError),
        ):
            service.process(event)

        record = db_session.query(BillingEvent).one()
        assert record.status == "error"
        assert record.error_message == "db down"

        # Redelivery is processed again
        _, status = StripeWebhookService(db_session).process(event)
        assert status == STATUS_PROCESSED


class TestWebhookAPI:
    def _provider(self, valid: bool = True) -> MagicMock:
        provider = MagicMock()
        provider.verify_webhook_signature.return_value = valid
        return provider

    def test_invalid_signature(self, client):
        with patch("app.routers.billing.get_payment_provider", return_value=self._provider(False)):
            response = client.post(
                "/v1/billing/webhook",
                content=b"{}",
                headers={"Stripe-Signature": "bad"},
            )
        assert response.status_code == 401

    def test_invalid_json(self, client):
        with patch("app.routers.billing.get_payment_provider", return_value=self._provider()):
            response = client.post(
                "/v1/billing/webhook",
                content=b"not json",
                headers={"Stripe-Signature": "t=1,v1=abc"},
            )
        assert response.status_code == 400

    def test_accepts_event(self, client):
        payload = json.dumps(_event("evt_api", "customer.created", {"id": "cus_9"})).encode()
        with patch("app.routers.billing.get_payment_provider", return_value=self._provider()):
            response = client.post(
                "/v1/billing/webhook",
                content=payload,
                headers={"Stripe-Signature": "t=1,v1=abc"},
            )
        assert response.status_code == 200
        assert response.json() == {"received": True, "event_id": "evt_api", "status": "ignored"}
