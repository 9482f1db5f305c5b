from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid, tenant_id_column


class SubscriptionInvoice(Base):
    """Processor invoice history for a tenant's plan subscription."""

    __tablename__ = "subscription_invoices"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    subscription_id = Column(
        UUIDType, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=True
    )
    stripe_invoice_id = Column(String(255), unique=True, index=True, nullable=False)
    status = Column(String(30), nullable=False)
    amount_due_cents = Column(Integer, nullable=False, default=0)
    amount_paid_cents = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="EUR")
    hosted_invoice_url = Column(String(2048), nullable=True)
    period_start = Column(DateTime(timezone=True), nullable=True)
    period_end = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
