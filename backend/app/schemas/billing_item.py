from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.billing_item import BillingPeriodicity


class BillingItemCreate(BaseModel):
    academy_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    amount_cents: int = Field(..., ge=0)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    periodicity: BillingPeriodicity = BillingPeriodicity.MONTHLY


class BillingItemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    amount_cents: int | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    periodicity: BillingPeriodicity | None = None
    is_active: bool | None = None


class BillingItemResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    academy_id: UUID
    name: str
    description: str | None
    amount_cents: int
    currency: str
    periodicity: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BillingItemDeleteResponse(BaseModel):
    id: UUID
    deleted: bool
    deactivated: bool
