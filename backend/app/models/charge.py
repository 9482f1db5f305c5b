from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid, tenant_id_column


class ChargeStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    PARTIAL = "partial"


class PaymentMethod(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    BIZUM = "bizum"
    CARD_MANUAL = "card_manual"
    CARD = "card"
    OTHER = "other"


# Statuses that count as an existing obligation for duplicate detection
OPEN_OR_SETTLED_STATUSES = (
    ChargeStatus.PENDING.value,
    ChargeStatus.PAID.value,
    ChargeStatus.OVERDUE.value,
    ChargeStatus.PARTIAL.value,
)


class Charge(Base):
    __tablename__ = "charges"
    __table_args__ = (
        Index("ix_charges_academy_period", "academy_id", "period"),
        Index("ix_charges_athlete_period", "athlete_id", "period"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    academy_id = Column(
        UUIDType, ForeignKey("academies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    athlete_id = Column(
        UUIDType, ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    billing_item_id = Column(
        UUIDType, ForeignKey("billing_items.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    class_id = Column(UUIDType, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    label = Column(String(255), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")
    period = Column(String(7), nullable=False)  # YYYY-MM
    due_date = Column(Date, nullable=True, index=True)
    status = Column(String(20), nullable=False, default=ChargeStatus.PENDING.value, index=True)
    payment_method = Column(String(20), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    # Set only on generated charges: "<academy>:<athlete>:<period>"; released on cancel
    generation_key = Column(String(120), nullable=True, unique=True)
    provider_checkout_id = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
