"""Processing of Stripe webhook events.

Every event is stored as a ``BillingEvent`` before it is handled. A redelivery
of an already processed event is acknowledged without side effects; an event
whose handler failed is marked ``error`` and handled again on redelivery.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.billing_event import BillingEvent, BillingEventStatus
from app.models.charge import ChargeStatus, PaymentMethod
from app.models.plan import PlanCode
from app.models.subscription import Subscription, SubscriptionStatus
from app.repositories.billing_event_repository import BillingEventRepository
from app.repositories.charge_repository import ChargeRepository
from app.repositories.plan_repository import PlanRepository
from app.repositories.subscription_invoice_repository import SubscriptionInvoiceRepository
from app.repositories.subscription_repository import SubscriptionRepository
from app.repositories.tenant_repository import TenantRepository
from app.services.charge_status import ChargeStatusService, can_transition
from app.services.email_delivery import EmailDeliveryService
from app.services.email_service import (
    TEMPLATE_SUBSCRIPTION_PAYMENT_FAILED,
    render_subscription_payment_failed,
)
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

STATUS_PROCESSED = "processed"
STATUS_DUPLICATE = "duplicate"
STATUS_IGNORED = "ignored"


def _timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=UTC)


def _uuid(value: Any) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _subscription_status(value: str | None) -> str:
    valid = {s.value for s in SubscriptionStatus}
    return value if value in valid else SubscriptionStatus.INCOMPLETE.value


class StripeWebhookService:
    def __init__(self, db: Session):
        self.db = db
        self.events = BillingEventRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.handlers: dict[str, Callable[[dict[str, Any]], UUID | None]] = {
            "customer.subscription.created": self._handle_subscription_upsert,
            "customer.subscription.updated": self._handle_subscription_upsert,
            "customer.subscription.deleted": self._handle_subscription_deleted,
            "invoice.paid": self._handle_invoice_paid,
            "invoice.payment_failed": self._handle_invoice_payment_failed,
            "invoice.finalized": self._handle_invoice_finalized,
            "checkout.session.completed": self._handle_checkout_completed,
        }

    def process(self, event: dict[str, Any]) -> tuple[BillingEvent, str]:
        """Store and handle one event. Returns the stored row and the outcome."""
        event_id = str(event.get("id") or "")
        event_type = str(event.get("type") or "")
        record = self.events.record(event_id, event_type, event)
        if record.status == BillingEventStatus.PROCESSED.value:
            logger.info("Stripe event %s already processed", event_id)
            return record, STATUS_DUPLICATE

        handler = self.handlers.get(event_type)
        if handler is None:
            logger.info("Ignoring Stripe event %s of type %s", event_id, event_type)
            return self.events.mark_processed(record), STATUS_IGNORED

        data_object = event.get("data", {}).get("object", {})
        try:
            tenant_id = handler(data_object)
        except Exception as e:
            self.db.rollback()
            logger.exception("Failed to process Stripe event %s (%s)", event_id, event_type)
            self.events.mark_error(record, str(e) or e.__class__.__name__)
            raise
        return self.events.mark_processed(record, tenant_id), STATUS_PROCESSED

    def _find_subscription(self, obj: dict[str, Any]) -> Subscription | None:
        stripe_subscription_id = obj.get("subscription") or (
            obj.get("id") if obj.get("object") == "subscription" else None
        )
        if stripe_subscription_id:
            found = self.subscriptions.get_by_stripe_subscription_id(stripe_subscription_id)
            if found is not None:
                return found
        if obj.get("customer"):
            found = self.subscriptions.get_by_stripe_customer_id(obj["customer"])
            if found is not None:
                return found
        tenant_id = _uuid((obj.get("metadata") or {}).get("tenant_id"))
        if tenant_id is not None and TenantRepository(self.db).get_by_id(tenant_id):
            return self.subscriptions.get_or_create_for_tenant(tenant_id)
        return None

    def _handle_subscription_upsert(self, obj: dict[str, Any]) -> UUID | None:
        subscription = self._find_subscription(obj)
        if subscription is None:
            logger.warning("No tenant found for Stripe subscription %s", obj.get("id"))
            return None

        subscription.stripe_subscription_id = obj.get("id")  # type: ignore[assignment]
        if obj.get("customer"):
            subscription.stripe_customer_id = obj["customer"]  # type: ignore[assignment]
        subscription.status = _subscription_status(obj.get("status"))  # type: ignore[assignment]
        subscription.current_period_end = _timestamp(obj.get("current_period_end"))  # type: ignore[assignment]
        subscription.cancel_at_period_end = bool(obj.get("cancel_at_period_end"))  # type: ignore[assignment]

        items = (obj.get("items") or {}).get("data") or []
        price_id = ((items[0] if items else {}).get("price") or {}).get("id")
        plan = PlanRepository(self.db).get_by_stripe_price_id(price_id) if price_id else None
        if plan is not None:
            subscription.plan_id = plan.id  # type: ignore[assignment]
        self.subscriptions.save(subscription)
        return subscription.tenant_id  # type: ignore[return-value]

    def _handle_subscription_deleted(self, obj: dict[str, Any]) -> UUID | None:
        subscription = self._find_subscription(obj)
        if subscription is None:
            return None
        free = PlanRepository(self.db).get_by_code(PlanCode.FREE.value)
        if free is not None:
            subscription.plan_id = free.id  # type: ignore[assignment]
        subscription.status = SubscriptionStatus.CANCELED.value  # type: ignore[assignment]
        subscription.stripe_subscription_id = None  # type: ignore[assignment]
        subscription.cancel_at_period_end = False  # type: ignore[assignment]
        subscription.current_period_end = None  # type: ignore[assignment]
        self.subscriptions.save(subscription)
        logger.info("Subscription of tenant %s cancelled, back on free", subscription.tenant_id)
        return subscription.tenant_id  # type: ignore[return-value]

    def _record_invoice(self, obj: dict[str, Any]) -> Subscription | None:
        subscription = self._find_subscription(obj)
        if subscription is None:
            logger.warning("No tenant found for Stripe invoice %s", obj.get("id"))
            return None
        SubscriptionInvoiceRepository(self.db).upsert(
            tenant_id=subscription.tenant_id,  # type: ignore[arg-type]
            subscription_id=subscription.id,  # type: ignore[arg-type]
            stripe_invoice_id=str(obj.get("id")),
            status=str(obj.get("status") or "open"),
            amount_due_cents=int(obj.get("amount_due") or 0),
            amount_paid_cents=int(obj.get("amount_paid") or 0),
            currency=str(obj.get("currency") or "eur"),
            hosted_invoice_url=obj.get("hosted_invoice_url"),
            period_start=_timestamp(obj.get("period_start")),
            period_end=_timestamp(obj.get("period_end")),
        )
        return subscription

    def _handle_invoice_finalized(self, obj: dict[str, Any]) -> UUID | None:
        subscription = self._record_invoice(obj)
        return subscription.tenant_id if subscription else None  # type: ignore[return-value]

    def _handle_invoice_paid(self, obj: dict[str, Any]) -> UUID | None:
        subscription = self._record_invoice(obj)
        if subscription is None:
            return None
        if subscription.status == SubscriptionStatus.PAST_DUE.value:
            subscription.status = SubscriptionStatus.ACTIVE.value  # type: ignore[assignment]
            self.subscriptions.save(subscription)
        return subscription.tenant_id  # type: ignore[return-value]

    def _handle_invoice_payment_failed(self, obj: dict[str, Any]) -> UUID | None:
        subscription = self._record_invoice(obj)
        if subscription is None:
            return None
        tenant_id: UUID = subscription.tenant_id  # type: ignore[assignment]
        subscription.status = SubscriptionStatus.PAST_DUE.value  # type: ignore[assignment]
        self.subscriptions.save(subscription)

        NotificationService(self.db).notify_subscription_payment_failed(
            tenant_id=tenant_id, invoice_id=str(obj.get("id"))
        )
        tenant = TenantRepository(self.db).get_by_id(tenant_id)
        if tenant is not None and tenant.owner_email:
            subject, html_body = render_subscription_payment_failed(
                tenant.owner_name,  # type: ignore[arg-type]
                obj.get("hosted_invoice_url"),
            )
            # Sent by the email retry job
            EmailDeliveryService(self.db).queue(
                tenant_id=tenant_id,
                template=TEMPLATE_SUBSCRIPTION_PAYMENT_FAILED,
                to_email=str(tenant.owner_email),
                subject=subject,
                html_body=html_body,
                metadata={"invoice_id": obj.get("id")},
            )
        return tenant_id

    def _handle_checkout_completed(self, obj: dict[str, Any]) -> UUID | None:
        metadata = obj.get("metadata") or {}
        charge_id = _uuid(metadata.get("charge_id"))
        if charge_id is not None:
            return self._settle_charge(charge_id, obj)

        if obj.get("mode") == "subscription":
            subscription = self._find_subscription(obj)
            if subscription is None:
                return None
            if obj.get("customer"):
                subscription.stripe_customer_id = obj["customer"]  # type: ignore[assignment]
            if obj.get("subscription"):
                subscription.stripe_subscription_id = obj["subscription"]  # type: ignore[assignment]
            plan_code = metadata.get("plan_code")
            plan = PlanRepository(self.db).get_by_code(plan_code) if plan_code else None
            if plan is not None:
                subscription.plan_id = plan.id  # type: ignore[assignment]
            subscription.status = SubscriptionStatus.ACTIVE.value  # type: ignore[assignment]
            self.subscriptions.save(subscription)
            return subscription.tenant_id  # type: ignore[return-value]
        return None

    def _settle_charge(self, charge_id: UUID, obj: dict[str, Any]) -> UUID | None:
        charge = ChargeRepository(self.db).get_by_id(charge_id)
        if charge is None:
            logger.warning("Checkout completed for unknown charge %s", charge_id)
            return None
        if obj.get("payment_status") != "paid":
            logger.info("Checkout for charge %s completed without payment", charge_id)
            return charge.tenant_id  # type: ignore[return-value]
        if not can_transition(ChargeStatus(charge.status), ChargeStatus.PAID):
            logger.warning(
                "Charge %s paid online while %s; leaving status unchanged",
                charge_id,
                charge.status,
            )
            return charge.tenant_id  # type: ignore[return-value]
        ChargeStatusService(self.db).transition(
            charge, ChargeStatus.PAID, payment_method=PaymentMethod.CARD.value
        )
        return charge.tenant_id  # type: ignore[return-value]
