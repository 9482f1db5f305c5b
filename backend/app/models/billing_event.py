from enum import Enum

from sqlalchemy import JSON, Column, DateTime, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class BillingEventStatus(str, Enum):
    RECEIVED = "received"
    PROCESSED = "processed"
    ERROR = "error"


class BillingEvent(Base):
    """A payment processor webhook event as received."""

    __tablename__ = "billing_events"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    provider_event_id = Column(String(255), unique=True, index=True, nullable=False)
    event_type = Column(String(100), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=BillingEventStatus.RECEIVED.value)
    tenant_id = Column(UUIDType, nullable=True, index=True)
    payload = Column(JSON, nullable=False, default=dict)
    error_message = Column(Text, nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
