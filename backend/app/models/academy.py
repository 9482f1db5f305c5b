from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid, tenant_id_column


class AcademyType(str, Enum):
    ARTISTIC = "artistic"
    RHYTHMIC = "rhythmic"
    TRAMPOLINE = "trampoline"
    GENERAL = "general"


class Academy(Base):
    __tablename__ = "academies"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    academy_type = Column(String(20), nullable=False, default=AcademyType.ARTISTIC.value)
    description = Column(Text, nullable=True)
    city = Column(String(255), nullable=True, index=True)
    country = Column(String(2), nullable=True, index=True)
    contact_email = Column(String(255), nullable=True)
    currency = Column(String(3), nullable=False, default="EUR")
    is_public = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
