from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.attendance import AttendanceStatus


class AttendanceEntry(BaseModel):
    athlete_id: UUID
    status: AttendanceStatus
    notes: str | None = None


class AttendanceMarkRequest(BaseModel):
    entries: list[AttendanceEntry] = Field(..., min_length=1)

    @field_validator("entries")
    @classmethod
    def unique_athletes(cls, entries: list[AttendanceEntry]) -> list[AttendanceEntry]:
        athlete_ids = [entry.athlete_id for entry in entries]
        if len(set(athlete_ids)) != len(athlete_ids):
            raise ValueError("Each athlete may appear only once")
        return entries


class AttendanceRecordResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    session_id: UUID
    athlete_id: UUID
    status: str
    notes: str | None
    recorded_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AthleteAttendanceRecord(AttendanceRecordResponse):
    session_date: date
    class_id: UUID


class AttendanceSummary(BaseModel):
    athlete_id: UUID
    total_sessions: int
    present: int
    absent: int
    late: int
    excused: int
    attendance_rate: float
