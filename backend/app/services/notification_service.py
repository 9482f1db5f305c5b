"""In-app notifications for academy staff.

Each helper builds the wording for one system event; the worker and the
processor webhook are the only producers.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from app.models.notification import Notification
from app.repositories.notification_repository import NotificationRepository

CATEGORY_PAYMENT = "payment"
CATEGORY_PLAN = "plan"
CATEGORY_SUBSCRIPTION = "subscription"


class NotificationService:
    def __init__(self, db: Session):
        self.repo = NotificationRepository(db)

    def notify_overdue_charge(
        self,
        *,
        tenant_id: UUID,
        academy_id: UUID,
        charge_id: UUID,
        athlete_name: str,
        label: str,
        days_overdue: int,
    ) -> Notification:
        return self.repo.create(
            tenant_id=tenant_id,
            academy_id=academy_id,
            category=CATEGORY_PAYMENT,
            title="Overdue payment",
            message=f"{athlete_name}: '{label}' is {days_overdue} days overdue.",
            resource_type="charge",
            resource_id=charge_id,
        )

    def notify_plan_limits_exceeded(
        self, *, tenant_id: UUID, plan_name: str, violation_count: int
    ) -> Notification:
        """Raised after a forced downgrade leaves usage above the new plan's limits."""
        return self.repo.create(
            tenant_id=tenant_id,
            category=CATEGORY_PLAN,
            title="Plan limits exceeded",
            message=(
                f"Your account was moved to the {plan_name} plan and exceeds "
                f"{violation_count} of its limits. Existing records are kept, "
                "but new ones cannot be added until usage is reduced."
            ),
            resource_type="subscription",
        )

    def notify_subscription_payment_failed(self, *, tenant_id: UUID, invoice_id: str) -> Notification:
        return self.repo.create(
            tenant_id=tenant_id,
            category=CATEGORY_SUBSCRIPTION,
            title="Subscription payment failed",
            message=f"Payment for invoice {invoice_id} failed. Please update your payment method.",
            resource_type="subscription",
        )
