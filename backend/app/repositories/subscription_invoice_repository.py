from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.subscription_invoice import SubscriptionInvoice


class SubscriptionInvoiceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, tenant_id: UUID, skip: int = 0, limit: int = 50) -> list[SubscriptionInvoice]:
        return (
            self.db.query(SubscriptionInvoice)
            .filter(SubscriptionInvoice.tenant_id == tenant_id)
            .order_by(SubscriptionInvoice.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_stripe_id(self, stripe_invoice_id: str) -> SubscriptionInvoice | None:
        return (
            self.db.query(SubscriptionInvoice)
            .filter(SubscriptionInvoice.stripe_invoice_id == stripe_invoice_id)
            .first()
        )

    def upsert(
        self,
        *,
        tenant_id: UUID,
        subscription_id: UUID | None,
        stripe_invoice_id: str,
        status: str,
        amount_due_cents: int,
        amount_paid_cents: int,
        currency: str,
        hosted_invoice_url: str | None = None,
        period_start: datetime | None = None,
        period_end: datetime | None = None,
    ) -> SubscriptionInvoice:
        invoice = self.get_by_stripe_id(stripe_invoice_id)
        if invoice is None:
            invoice = SubscriptionInvoice(
                tenant_id=tenant_id, stripe_invoice_id=stripe_invoice_id
            )
            self.db.add(invoice)
        invoice.subscription_id = subscription_id  # type: ignore[assignment]
        invoice.status = status  # type: ignore[assignment]
        invoice.amount_due_cents = amount_due_cents  # type: ignore[assignment]
        invoice.amount_paid_cents = amount_paid_cents  # type: ignore[assignment]
        invoice.currency = currency.upper()  # type: ignore[assignment]
        invoice.hosted_invoice_url = hosted_invoice_url  # type: ignore[assignment]
        invoice.period_start = period_start  # type: ignore[assignment]
        invoice.period_end = period_end  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(invoice)
        return invoice
