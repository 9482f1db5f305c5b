from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Time, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid, tenant_id_column


class GymClass(Base):
    """A recurring weekly class slot."""

    __tablename__ = "classes"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    academy_id = Column(
        UUIDType, ForeignKey("academies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    group_id = Column(UUIDType, ForeignKey("groups.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    weekday = Column(Integer, nullable=True)  # 0 = Monday
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    capacity = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
