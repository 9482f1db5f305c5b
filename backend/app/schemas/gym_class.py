from datetime import datetime, time
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class GymClassCreate(BaseModel):
    academy_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    group_id: UUID | None = None
    weekday: int | None = Field(default=None, ge=0, le=6)
    start_time: time | None = None
    end_time: time | None = None
    capacity: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_times(self) -> "GymClassCreate":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class GymClassResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    academy_id: UUID
    group_id: UUID | None
    name: str
    weekday: int | None
    start_time: time | None
    end_time: time | None
    capacity: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
