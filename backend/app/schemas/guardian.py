from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class GuardianCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)


class GuardianUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)


class GuardianResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    email: str | None
    phone: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AthleteGuardianCreate(BaseModel):
    guardian_id: UUID
    relationship: str | None = Field(default=None, max_length=50)
    is_primary: bool = False
    notify_email: bool = True


class AthleteGuardianResponse(BaseModel):
    id: UUID
    athlete_id: UUID
    guardian_id: UUID
    relationship: str | None
    is_primary: bool
    notify_email: bool
    created_at: datetime

    model_config = {"from_attributes": True}
