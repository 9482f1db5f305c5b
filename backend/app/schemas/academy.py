from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.models.academy import AcademyType


class AcademyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    academy_type: AcademyType = AcademyType.ARTISTIC
    description: str | None = None
    city: str | None = Field(default=None, max_length=255)
    country: str | None = Field(default=None, min_length=2, max_length=2)
    contact_email: EmailStr | None = None
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    is_public: bool = False


class AcademyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    academy_type: AcademyType | None = None
    description: str | None = None
    city: str | None = Field(default=None, max_length=255)
    country: str | None = Field(default=None, min_length=2, max_length=2)
    contact_email: EmailStr | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    is_public: bool | None = None


class AcademyResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    slug: str
    academy_type: str
    description: str | None
    city: str | None
    country: str | None
    contact_email: str | None
    currency: str
    is_public: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PublicAcademyResponse(BaseModel):
    """Directory listing; omits tenant and billing details."""

    name: str
    slug: str
    academy_type: str
    description: str | None
    city: str | None
    country: str | None
    contact_email: str | None

    model_config = {"from_attributes": True}
