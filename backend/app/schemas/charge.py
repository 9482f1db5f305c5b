from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.charge import ChargeStatus, PaymentMethod

PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class ChargeCreate(BaseModel):
    academy_id: UUID
    athlete_id: UUID
    label: str = Field(..., min_length=1, max_length=255)
    amount_cents: int = Field(..., ge=0)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    period: str = Field(..., pattern=PERIOD_PATTERN)
    due_date: date | None = None
    billing_item_id: UUID | None = None
    class_id: UUID | None = None
    status: ChargeStatus = ChargeStatus.PENDING
    payment_method: PaymentMethod | None = None
    paid_at: datetime | None = None
    notes: str | None = None


class ChargeUpdate(BaseModel):
    label: str | None = Field(default=None, min_length=1, max_length=255)
    amount_cents: int | None = Field(default=None, ge=0)
    due_date: date | None = None
    status: ChargeStatus | None = None
    payment_method: PaymentMethod | None = None
    paid_at: datetime | None = None
    notes: str | None = None


class ChargeResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    academy_id: UUID
    athlete_id: UUID
    billing_item_id: UUID | None
    class_id: UUID | None
    label: str
    amount_cents: int
    currency: str
    period: str
    due_date: date | None
    status: str
    payment_method: str | None
    paid_at: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MarkPaidRequest(BaseModel):
    payment_method: PaymentMethod | None = None
    paid_at: datetime | None = None


class GenerateMonthlyRequest(BaseModel):
    academy_id: UUID
    period: str = Field(..., pattern=PERIOD_PATTERN)
    group_id: UUID | None = None
    skip_duplicates: bool = True


class GenerateMonthlyResponse(BaseModel):
    created: int
    skipped: int
    charge_ids: list[UUID] = Field(default_factory=list)


class BulkChargeRequest(BaseModel):
    """One charge per active member of ``group_id`` from a billing item."""

    academy_id: UUID
    group_id: UUID
    billing_item_id: UUID
    period: str = Field(..., pattern=PERIOD_PATTERN)
    due_date: date | None = None
    label: str | None = Field(default=None, min_length=1, max_length=255)
    amount_cents: int | None = Field(default=None, ge=0)


class ChargeCheckoutResponse(BaseModel):
    charge_id: UUID
    checkout_url: str
