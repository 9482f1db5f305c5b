from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class PlanCode(str, Enum):
    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"


class Plan(Base):
    """A subscription tier. ``None`` limits mean unlimited."""

    __tablename__ = "plans"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    price_cents = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="EUR")
    stripe_price_id = Column(String(255), nullable=True)
    athlete_limit = Column(Integer, nullable=True)
    class_limit = Column(Integer, nullable=True)
    group_limit = Column(Integer, nullable=True)
    academy_limit = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
