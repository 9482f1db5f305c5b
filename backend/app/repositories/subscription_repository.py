from uuid import UUID

from sqlalchemy.orm import Session

from app.models.plan import Plan, PlanCode
from app.models.subscription import Subscription, SubscriptionStatus
from app.repositories.plan_repository import PlanRepository


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_for_tenant(self, tenant_id: UUID) -> Subscription | None:
        return self.db.query(Subscription).filter(Subscription.tenant_id == tenant_id).first()

    def get_or_create_for_tenant(self, tenant_id: UUID) -> Subscription:
        """Return the tenant's subscription, starting it on the free plan if missing."""
        subscription = self.get_for_tenant(tenant_id)
        if subscription is not None:
            return subscription
        plans = PlanRepository(self.db)
        free = plans.get_by_code(PlanCode.FREE.value)
        if free is None:
            plans.ensure_defaults()
            free = plans.get_by_code(PlanCode.FREE.value)
        subscription = Subscription(
            tenant_id=tenant_id,
            plan_id=free.id,  # type: ignore[union-attr]
            status=SubscriptionStatus.ACTIVE.value,
        )
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def get_plan(self, subscription: Subscription) -> Plan:
        plan = self.db.query(Plan).filter(Plan.id == subscription.plan_id).first()
        assert plan is not None
        return plan

    def get_by_stripe_subscription_id(self, stripe_subscription_id: str) -> Subscription | None:
        return (
            self.db.query(Subscription)
            .filter(Subscription.stripe_subscription_id == stripe_subscription_id)
            .first()
        )

    def get_by_stripe_customer_id(self, stripe_customer_id: str) -> Subscription | None:
        return (
            self.db.query(Subscription)
            .filter(Subscription.stripe_customer_id == stripe_customer_id)
            .first()
        )

    def save(self, subscription: Subscription) -> Subscription:
        self.db.commit()
        self.db.refresh(subscription)
        return subscription
