"""Tests for the Stripe provider wrapper, with the stripe module mocked."""

import uuid
from unittest.mock import MagicMock

import pytest

from app.services.payment_provider import PaymentProviderError, StripeProvider


class SignatureError(Exception):
    pass


@pytest.fixture
def mock_stripe():
    stripe = MagicMock()
    stripe.error.SignatureVerificationError = SignatureError
    session = MagicMock()
    session.id = "cs_test_123"
    session.url = "https://checkout.stripe.com/c/cs_test_123"
    session.expires_at = 1767225600
    stripe.checkout.Session.create.return_value = session
    return stripe


@pytest.fixture
def provider(mock_stripe):
    provider = StripeProvider(api_key="sk_test", webhook_secret="whsec_test")
    provider._stripe = mock_stripe
    return provider


class TestStripeProvider:
    def test_charge_checkout(self, provider, mock_stripe):
        charge_id = uuid.uuid4()
        tenant_id = uuid.uuid4()

        session = provider.create_charge_checkout(
            charge_id=charge_id,
            tenant_id=tenant_id,
            label="Competition monthly fee - November 2025",
            amount_cents=5000,
            currency="EUR",
            success_url="https://app.example.com/ok",
            cancel_url="https://app.example.com/cancel",
            customer_email="parent@example.com",
        )

        assert session.provider_checkout_id == "cs_test_123"
        assert session.expires_at is not None
        params = mock_stripe.checkout.Session.create.call_args.kwargs
        assert params["mode"] == "payment"
        assert params["customer_email"] == "parent@example.com"
        assert params["metadata"] == {"charge_id": str(charge_id), "tenant_id": str(tenant_id)}
        price_data = params["line_items"][0]["price_data"]
        assert price_data["currency"] == "eur"
        assert price_data["unit_amount"] == 5000

    def test_subscription_checkout(self, provider, mock_stripe):
        tenant_id = uuid.uuid4()

        provider.create_subscription_checkout(
            price_id="price_pro",
            customer_id="cus_1",
            tenant_id=tenant_id,
            plan_code="pro",
            success_url="https://app.example.com/ok",
            cancel_url="https://app.example.com/cancel",
        )

        params = mock_stripe.checkout.Session.create.call_args.kwargs
        assert params["mode"] == "subscription"
        assert params["line_items"] == [{"price": "price_pro", "quantity": 1}]
        assert params["subscription_data"]["metadata"]["plan_code"] == "pro"

    def test_create_customer(self, provider, mock_stripe):
        mock_stripe.Customer.create.return_value = MagicMock(id="cus_42")
        tenant_id = uuid.uuid4()

        assert provider.create_customer("owner@example.com", None, tenant_id) == "cus_42"
        mock_stripe.Customer.create.assert_called_once_with(
            metadata={"tenant_id": str(tenant_id)}, email="owner@example.com"
        )

    def test_cancel_at_period_end(self, provider, mock_stripe):
        provider.set_cancel_at_period_end("sub_1")

        mock_stripe.Subscription.modify.assert_called_once_with(
            "sub_1", cancel_at_period_end=True
        )

    def test_not_configured(self, mock_stripe, monkeypatch):
        monkeypatch.setattr("app.services.payment_provider.settings.stripe_api_key", "")
        provider = StripeProvider(api_key="")
        provider._stripe = mock_stripe

        with pytest.raises(PaymentProviderError) as exc_info:
            provider.create_portal_session("cus_1", "https://app.example.com/billing")
        assert exc_info.value.status_code == 503


class TestWebhookSignature:
    def test_valid(self, provider, mock_stripe):
        assert provider.verify_webhook_signature(b"{}", "t=1,v1=abc") is True
        mock_stripe.Webhook.construct_event.assert_called_once_with(b"{}", "t=1,v1=abc", "whsec_test")

    def test_invalid(self, provider, mock_stripe):
        mock_stripe.Webhook.construct_event.side_effect = SignatureError("bad")

        assert provider.verify_webhook_signature(b"{}", "t=1,v1=abc") is False

    def test_without_secret(self, mock_stripe, monkeypatch):
        monkeypatch.setattr("app.services.payment_provider.settings.stripe_webhook_secret", "")
        provider = StripeProvider(api_key="sk_test", webhook_secret="")
        provider._stripe = mock_stripe

        assert provider.verify_webhook_signature(b"{}", "sig") is False
        mock_stripe.Webhook.construct_event.assert_not_called()
