from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid, tenant_id_column


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class AttendanceRecord(Base):
    """An athlete's attendance at one class session. Re-marking overwrites the row."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("session_id", "athlete_id", name="uq_attendance_session_athlete"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    session_id = Column(
        UUIDType, ForeignKey("class_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    athlete_id = Column(
        UUIDType, ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    recorded_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
