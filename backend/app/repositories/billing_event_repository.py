from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.billing_event import BillingEvent, BillingEventStatus
from app.models.shared import utc_now


class BillingEventRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_provider_event_id(self, provider_event_id: str) -> BillingEvent | None:
        return (
            self.db.query(BillingEvent)
            .filter(BillingEvent.provider_event_id == provider_event_id)
            .first()
        )

    def record(
        self, provider_event_id: str, event_type: str, payload: dict[str, Any]
    ) -> BillingEvent:
        """Store a received event, or return the existing row for a redelivery."""
        event = self.get_by_provider_event_id(provider_event_id)
        if event is not None:
            return event
        event = BillingEvent(
            provider_event_id=provider_event_id,
            event_type=event_type,
            payload=payload,
            status=BillingEventStatus.RECEIVED.value,
        )
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def mark_processed(self, event: BillingEvent, tenant_id: UUID | None = None) -> BillingEvent:
        event.status = BillingEventStatus.PROCESSED.value  # type: ignore[assignment]
        event.error_message = None  # type: ignore[assignment]
        event.processed_at = utc_now()  # type: ignore[assignment]
        if tenant_id is not None:
            event.tenant_id = tenant_id  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(event)
        return event

    def mark_error(self, event: BillingEvent, message: str) -> BillingEvent:
        event.status = BillingEventStatus.ERROR.value  # type: ignore[assignment]
        event.error_message = message  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(event)
        return event
