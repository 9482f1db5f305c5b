from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid, tenant_id_column


class BillingPeriodicity(str, Enum):
    ONE_TIME = "one_time"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BillingItem(Base):
    """A reusable fee definition. Deactivated rather than deleted once charged."""

    __tablename__ = "billing_items"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    academy_id = Column(
        UUIDType, ForeignKey("academies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")
    periodicity = Column(String(20), nullable=False, default=BillingPeriodicity.MONTHLY.value)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
