from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, model_validator

from app.models.class_session import ClassSessionStatus


def _check_times(start_time: time | None, end_time: time | None) -> None:
    if start_time and end_time and end_time <= start_time:
        raise ValueError("end_time must be after start_time")


class ClassSessionCreate(BaseModel):
    """A dated session of a class. Missing times are copied from the class."""

    class_id: UUID
    session_date: date
    start_time: time | None = None
    end_time: time | None = None
    status: ClassSessionStatus = ClassSessionStatus.SCHEDULED
    notes: str | None = None

    @model_validator(mode="after")
    def check_times(self) -> "ClassSessionCreate":
        _check_times(self.start_time, self.end_time)
        return self


class ClassSessionUpdate(BaseModel):
    session_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    status: ClassSessionStatus | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def check_times(self) -> "ClassSessionUpdate":
        _check_times(self.start_time, self.end_time)
        return self


class ClassSessionResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    academy_id: UUID
    class_id: UUID
    session_date: date
    start_time: time | None
    end_time: time | None
    status: str
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
