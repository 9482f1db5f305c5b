"""Tenant plan subscription management."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import AppError, NotFoundError, ValidationError
from app.models.plan import Plan, PlanCode
from app.models.subscription import Subscription
from app.repositories.plan_repository import PlanRepository
from app.repositories.subscription_repository import SubscriptionRepository
from app.repositories.tenant_repository import TenantRepository
from app.services.audit_service import AuditService
from app.services.email_delivery import EmailDeliveryService
from app.services.email_service import TEMPLATE_PLAN_LIMITS_EXCEEDED, render_plan_limits_exceeded
from app.services.notification_service import NotificationService
from app.services.payment_provider import StripeProvider, get_payment_provider
from app.services.plan_limits import check_plan_limit_violations

logger = logging.getLogger(__name__)


class PlanLimitViolationError(AppError):
    code = "PLAN_LIMIT_VIOLATIONS"
    status_code = 400

    def __init__(self, plan_code: str, violations: list[dict[str, Any]]):
        super().__init__(
            f"Current usage exceeds the limits of the '{plan_code}' plan; "
            "confirm with force to apply the change anyway",
            details={"plan_code": plan_code, "violations": violations},
        )
        self.violations = violations


@dataclass
class PlanChangeResult:
    subscription: Subscription
    plan: Plan
    previous_plan_code: str
    violations: list[dict[str, Any]] = field(default_factory=list)
    forced: bool = False
    email_log_id: UUID | None = None


def subscription_payload(subscription: Subscription, plan: Plan) -> dict[str, Any]:
    return {
        "id": subscription.id,
        "tenant_id": subscription.tenant_id,
        "plan_id": subscription.plan_id,
        "plan_code": plan.code,
        "status": subscription.status,
        "stripe_customer_id": subscription.stripe_customer_id,
        "stripe_subscription_id": subscription.stripe_subscription_id,
        "current_period_end": subscription.current_period_end,
        "cancel_at_period_end": subscription.cancel_at_period_end,
        "created_at": subscription.created_at,
        "updated_at": subscription.updated_at,
    }


class SubscriptionService:
    def __init__(self, db: Session, provider: StripeProvider | None = None):
        self.db = db
        self.repo = SubscriptionRepository(db)
        self.plans = PlanRepository(db)
        self._provider = provider

    @property
    def provider(self) -> StripeProvider:
        if self._provider is None:
            self._provider = get_payment_provider()
        return self._provider

    def get(self, tenant_id: UUID) -> tuple[Subscription, Plan]:
        subscription = self.repo.get_or_create_for_tenant(tenant_id)
        return subscription, self.repo.get_plan(subscription)

    def _get_plan(self, plan_code: str) -> Plan:
        plan = self.plans.get_by_code(plan_code)
        if plan is None:
            raise NotFoundError("Plan")
        return plan

    def change_plan(
        self,
        tenant_id: UUID,
        plan_code: str,
        force: bool = False,
        actor_id: str | None = None,
    ) -> PlanChangeResult:
        """Move the tenant to ``plan_code``.

        A change that leaves current usage above the new limits is refused
        with ``PlanLimitViolationError`` unless ``force`` is set. A forced
        change is applied and the owner is notified in-app and by a queued
        email whose log id is returned for delivery.
        """
        subscription, previous = self.get(tenant_id)
        plan = self._get_plan(plan_code)
        if plan.id == previous.id:
            return PlanChangeResult(subscription, plan, str(previous.code))

        violations = check_plan_limit_violations(self.db, tenant_id, plan)
        if violations and not force:
            raise PlanLimitViolationError(plan_code, violations)

        if plan.code == PlanCode.FREE.value and subscription.stripe_subscription_id:
            self.provider.set_cancel_at_period_end(str(subscription.stripe_subscription_id))
            subscription.cancel_at_period_end = True  # type: ignore[assignment]
        elif subscription.cancel_at_period_end:
            subscription.cancel_at_period_end = False  # type: ignore[assignment]
        subscription.plan_id = plan.id  # type: ignore[assignment]
        self.repo.save(subscription)

        AuditService(self.db).log_update(
            resource_type="subscription",
            resource_id=subscription.id,  # type: ignore[arg-type]
            tenant_id=tenant_id,
            actor_id=actor_id,
            old_data={"plan_code": previous.code},
            new_data={"plan_code": plan.code, "forced": bool(violations)},
        )
        logger.info(
            "Tenant %s moved from plan %s to %s (%d violations)",
            tenant_id,
            previous.code,
            plan.code,
            len(violations),
        )

        result = PlanChangeResult(
            subscription, plan, str(previous.code), violations, forced=bool(violations)
        )
        if violations:
            result.email_log_id = self._notify_limits_exceeded(tenant_id, plan, violations)
        return result

    def _notify_limits_exceeded(
        self, tenant_id: UUID, plan: Plan, violations: list[dict[str, Any]]
    ) -> UUID | None:
        NotificationService(self.db).notify_plan_limits_exceeded(
            tenant_id=tenant_id, plan_name=str(plan.name), violation_count=len(violations)
        )
        tenant = TenantRepository(self.db).get_by_id(tenant_id)
        if tenant is None or not tenant.owner_email:
            logger.warning("Tenant %s has no owner email, skipping plan change email", tenant_id)
            return None
        subject, html_body = render_plan_limits_exceeded(
            tenant.owner_name,  # type: ignore[arg-type]
            str(plan.name),
            violations,
        )
        log = EmailDeliveryService(self.db).queue(
            tenant_id=tenant_id,
            template=TEMPLATE_PLAN_LIMITS_EXCEEDED,
            to_email=str(tenant.owner_email),
            subject=subject,
            html_body=html_body,
            metadata={"plan_code": plan.code, "violations": len(violations)},
        )
        return log.id  # type: ignore[return-value]

    def create_checkout(
        self,
        tenant_id: UUID,
        plan_code: str,
        success_url: str | None = None,
        cancel_url: str | None = None,
    ) -> str:
        """Checkout URL for subscribing to a paid plan; creates the customer on first use."""
        plan = self._get_plan(plan_code)
        if not plan.stripe_price_id:
            raise ValidationError(f"Plan '{plan_code}' cannot be purchased online")
        subscription, _ = self.get(tenant_id)
        if not subscription.stripe_customer_id:
            tenant = TenantRepository(self.db).get_by_id(tenant_id)
            subscription.stripe_customer_id = self.provider.create_customer(  # type: ignore[assignment]
                tenant.owner_email if tenant else None,  # type: ignore[arg-type]
                tenant.name if tenant else None,  # type: ignore[arg-type]
                tenant_id,
            )
            self.repo.save(subscription)

        session = self.provider.create_subscription_checkout(
            price_id=str(plan.stripe_price_id),
            customer_id=str(subscription.stripe_customer_id),
            tenant_id=tenant_id,
            plan_code=str(plan.code),
            success_url=success_url or f"{settings.APP_BASE_URL}/billing?checkout=success",
            cancel_url=cancel_url or f"{settings.APP_BASE_URL}/billing?checkout=cancel",
        )
        return session.checkout_url

    def create_portal(self, tenant_id: UUID) -> str:
        subscription, _ = self.get(tenant_id)
        if not subscription.stripe_customer_id:
            raise ValidationError("No billing account exists yet for this tenant")
        return self.provider.create_portal_session(
            str(subscription.stripe_customer_id), f"{settings.APP_BASE_URL}/billing"
        )
