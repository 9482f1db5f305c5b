"""Stripe calls used by the academy: plan subscriptions and single-charge checkout.

Charge checkouts carry ``charge_id`` and ``tenant_id`` in their metadata and
subscription checkouts carry ``tenant_id`` and ``plan_code``; the webhook
handler relies on both to route events back to local records.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import stripe

from app.core.config import settings
from app.core.errors import AppError


class PaymentProviderError(AppError):
    code = "PAYMENT_PROVIDER_ERROR"
    status_code = 502


@dataclass
class CheckoutSession:
    provider_checkout_id: str
    checkout_url: str
    expires_at: datetime | None = None

    @classmethod
    def from_stripe(cls, session: Any) -> "CheckoutSession":
        expires_at = getattr(session, "expires_at", None)
        return cls(
            provider_checkout_id=session.id,
            checkout_url=session.url,
            expires_at=datetime.fromtimestamp(expires_at, tz=UTC) if expires_at else None,
        )


class StripeProvider:
    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        self.api_key = api_key or settings.stripe_api_key
        self.webhook_secret = webhook_secret or settings.stripe_webhook_secret
        self._stripe: Any = stripe

    @property
    def client(self) -> Any:
        """The stripe module, configured with this provider's key.

        Raises a 503 when no key is configured so callers surface a clear error.
        """
        if not self.api_key:
            raise PaymentProviderError("Payment processor is not configured", status_code=503)
        self._stripe.api_key = self.api_key
        return self._stripe

    def create_customer(self, email: str | None, name: str | None, tenant_id: UUID) -> str:
        optional = {"email": email, "name": name}
        customer = self.client.Customer.create(
            metadata={"tenant_id": str(tenant_id)},
            **{key: value for key, value in optional.items() if value},
        )
        return str(customer.id)

    def create_subscription_checkout(
        self,
        *,
        price_id: str,
        customer_id: str,
        tenant_id: UUID,
        plan_code: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        metadata = {"tenant_id": str(tenant_id), "plan_code": plan_code}
        session = self.client.checkout.Session.create(
            mode="subscription",
            customer=customer_id,
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )
        return CheckoutSession.from_stripe(session)

    def create_charge_checkout(
        self,
        *,
        charge_id: UUID,
        tenant_id: UUID,
        label: str,
        amount_cents: int,
        currency: str,
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
    ) -> CheckoutSession:
        """One-off payment for a charge; the amount is priced inline, not from a catalog price."""
        line_item = {
            "price_data": {
                "currency": currency.lower(),
                "product_data": {"name": label},
                "unit_amount": amount_cents,
            },
            "quantity": 1,
        }
        extra = {"customer_email": customer_email} if customer_email else {}
        session = self.client.checkout.Session.create(
            mode="payment",
            payment_method_types=["card"],
            line_items=[line_item],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={"charge_id": str(charge_id), "tenant_id": str(tenant_id)},
            **extra,
        )
        return CheckoutSession.from_stripe(session)

    def create_portal_session(self, customer_id: str, return_url: str) -> str:
        portal = self.client.billing_portal.Session.create(customer=customer_id, return_url=return_url)
        return str(portal.url)

    def set_cancel_at_period_end(self, subscription_id: str, cancel: bool = True) -> None:
        self.client.Subscription.modify(subscription_id, cancel_at_period_end=cancel)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        if not self.webhook_secret:
            return False
        try:
            self._stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, self._stripe.error.SignatureVerificationError):
            return False
        return True


def get_payment_provider() -> StripeProvider:
    return StripeProvider()
