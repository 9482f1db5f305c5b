from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class GroupCreate(BaseModel):
    academy_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    discipline: str | None = Field(default=None, max_length=50)
    level: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    monthly_fee_cents: int | None = Field(default=None, ge=0)
    billing_item_id: UUID | None = None


class GroupUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    discipline: str | None = Field(default=None, max_length=50)
    level: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    monthly_fee_cents: int | None = Field(default=None, ge=0)
    billing_item_id: UUID | None = None


class GroupResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    academy_id: UUID
    name: str
    discipline: str | None
    level: str | None
    color: str | None
    monthly_fee_cents: int | None
    billing_item_id: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GroupMemberCreate(BaseModel):
    athlete_id: UUID
    custom_fee_cents: int | None = Field(default=None, ge=0)


class GroupMemberUpdate(BaseModel):
    custom_fee_cents: int | None = Field(default=None, ge=0)


class GroupMembershipResponse(BaseModel):
    id: UUID
    group_id: UUID
    athlete_id: UUID
    custom_fee_cents: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
