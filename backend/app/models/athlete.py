from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid, tenant_id_column


class AthleteStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class Athlete(Base):
    __tablename__ = "athletes"
    __table_args__ = (Index("ix_athletes_academy_status", "academy_id", "status"),)

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    academy_id = Column(
        UUIDType, ForeignKey("academies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Primary group; the membership row for this group carries the fee override
    group_id = Column(
        UUIDType, ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name = Column(String(255), nullable=False)
    birth_date = Column(Date, nullable=True)
    level = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default=AthleteStatus.ACTIVE.value)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
