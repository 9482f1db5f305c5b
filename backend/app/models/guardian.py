from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid, tenant_id_column


class Guardian(Base):
    __tablename__ = "guardians"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AthleteGuardian(Base):
    __tablename__ = "athlete_guardians"
    __table_args__ = (UniqueConstraint("athlete_id", "guardian_id", name="uq_athlete_guardian"),)

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    athlete_id = Column(
        UUIDType, ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    guardian_id = Column(
        UUIDType, ForeignKey("guardians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    relationship = Column(String(50), nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    notify_email = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
