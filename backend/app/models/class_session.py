from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, Time, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid, tenant_id_column


class ClassSessionStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ClassSession(Base):
    """One dated occurrence of a weekly class, where attendance is taken."""

    __tablename__ = "class_sessions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    academy_id = Column(
        UUIDType, ForeignKey("academies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    class_id = Column(
        UUIDType, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    session_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    status = Column(String(20), nullable=False, default=ClassSessionStatus.SCHEDULED.value)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
