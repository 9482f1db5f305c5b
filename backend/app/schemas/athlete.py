from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.athlete import AthleteStatus


class AthleteCreate(BaseModel):
    academy_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    birth_date: date | None = None
    level: str | None = Field(default=None, max_length=50)
    status: AthleteStatus = AthleteStatus.ACTIVE
    group_id: UUID | None = None
    notes: str | None = None


class AthleteUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    birth_date: date | None = None
    level: str | None = Field(default=None, max_length=50)
    status: AthleteStatus | None = None
    group_id: UUID | None = None
    notes: str | None = None


class AthleteResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    academy_id: UUID
    group_id: UUID | None
    name: str
    birth_date: date | None
    level: str | None
    status: str
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AthleteUpdateResponse(AthleteResponse):
    """Athlete after an update, with the count of re-priced current-period charges."""

    synced_charges: int = 0
