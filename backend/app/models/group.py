from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid, tenant_id_column


class Group(Base):
    __tablename__ = "groups"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    academy_id = Column(
        UUIDType, ForeignKey("academies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    discipline = Column(String(50), nullable=True)
    level = Column(String(50), nullable=True)
    color = Column(String(7), nullable=True)
    monthly_fee_cents = Column(Integer, nullable=True)
    billing_item_id = Column(
        UUIDType, ForeignKey("billing_items.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class GroupMembership(Base):
    """An athlete's membership in a group, with an optional per-athlete fee."""

    __tablename__ = "group_memberships"
    __table_args__ = (UniqueConstraint("group_id", "athlete_id", name="uq_group_membership"),)

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    tenant_id = tenant_id_column()
    group_id = Column(
        UUIDType, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    athlete_id = Column(
        UUIDType, ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    custom_fee_cents = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
