from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.plan import PlanCode


class SubscriptionResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    plan_id: UUID
    plan_code: str
    status: str
    stripe_customer_id: str | None
    stripe_subscription_id: str | None
    current_period_end: datetime | None
    cancel_at_period_end: bool
    created_at: datetime
    updated_at: datetime


class LimitUsage(BaseModel):
    current: int
    limit: int | None
    remaining: int | None


class AcademyLimitUsage(BaseModel):
    academy_id: UUID
    academy_name: str
    athletes: LimitUsage
    classes: LimitUsage
    groups: LimitUsage


class LimitsResponse(BaseModel):
    plan_code: str
    academies: LimitUsage
    per_academy: list[AcademyLimitUsage] = Field(default_factory=list)


class ViolationItem(BaseModel):
    id: UUID
    name: str


class PlanLimitViolation(BaseModel):
    resource: str
    current_count: int
    limit: int
    items: list[ViolationItem] = Field(default_factory=list)
    academy_id: UUID | None = None
    academy_name: str | None = None


class ChangePlanRequest(BaseModel):
    plan_code: PlanCode
    force: bool = False


class ChangePlanResponse(BaseModel):
    subscription: SubscriptionResponse
    previous_plan_code: str
    violations: list[PlanLimitViolation] = Field(default_factory=list)
    forced: bool = False


class CheckoutRequest(BaseModel):
    plan_code: PlanCode
    success_url: str | None = None
    cancel_url: str | None = None


class SessionUrlResponse(BaseModel):
    url: str


class SubscriptionInvoiceResponse(BaseModel):
    id: UUID
    stripe_invoice_id: str
    status: str
    amount_due_cents: int
    amount_paid_cents: int
    currency: str
    hosted_invoice_url: str | None
    period_start: datetime | None
    period_end: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class WebhookAck(BaseModel):
    received: bool = True
    event_id: str
    status: str
