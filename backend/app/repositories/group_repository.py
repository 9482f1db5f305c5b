from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by
from app.models.athlete import Athlete, AthleteStatus
from app.models.group import Group, GroupMembership
from app.schemas.group import GroupCreate, GroupUpdate


class GroupRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        tenant_id: UUID,
        skip: int = 0,
        limit: int = 100,
        academy_id: UUID | None = None,
        order_by: str | None = None,
    ) -> list[Group]:
        query = self.db.query(Group).filter(Group.tenant_id == tenant_id)
        if academy_id is not None:
            query = query.filter(Group.academy_id == academy_id)
        query = apply_order_by(query, Group, order_by)
        return query.offset(skip).limit(limit).all()

    def count(self, tenant_id: UUID, academy_id: UUID | None = None) -> int:
        query = self.db.query(func.count(Group.id)).filter(Group.tenant_id == tenant_id)
        if academy_id is not None:
            query = query.filter(Group.academy_id == academy_id)
        return query.scalar() or 0

    def count_for_academy(self, academy_id: UUID) -> int:
        return (
            self.db.query(func.count(Group.id)).filter(Group.academy_id == academy_id).scalar()
            or 0
        )

    def get_by_id(self, group_id: UUID, tenant_id: UUID | None = None) -> Group | None:
        query = self.db.query(Group).filter(Group.id == group_id)
        if tenant_id is not None:
            query = query.filter(Group.tenant_id == tenant_id)
        return query.first()

    def get_by_ids(self, group_ids: set[UUID]) -> dict[UUID, Group]:
        if not group_ids:
            return {}
        groups = self.db.query(Group).filter(Group.id.in_(group_ids)).all()
        return {group.id: group for group in groups}  # type: ignore[misc]

    def create(self, data: GroupCreate, tenant_id: UUID) -> Group:
        group = Group(**data.model_dump(), tenant_id=tenant_id)
        self.db.add(group)
        self.db.commit()
        self.db.refresh(group)
        return group

    def update(self, group_id: UUID, data: GroupUpdate, tenant_id: UUID) -> Group | None:
        group = self.get_by_id(group_id, tenant_id)
        if not group:
            return None
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(group, key, value)
        self.db.commit()
        self.db.refresh(group)
        return group

    def delete(self, group_id: UUID, tenant_id: UUID) -> bool:
        group = self.get_by_id(group_id, tenant_id)
        if not group:
            return False
        self.db.query(Athlete).filter(Athlete.group_id == group_id).update(
            {Athlete.group_id: None}, synchronize_session=False
        )
        self.db.query(GroupMembership).filter(GroupMembership.group_id == group_id).delete(
            synchronize_session=False
        )
        self.db.delete(group)
        self.db.commit()
        return True

    # Memberships

    def get_membership(self, group_id: UUID, athlete_id: UUID) -> GroupMembership | None:
        return (
            self.db.query(GroupMembership)
            .filter(
                GroupMembership.group_id == group_id,
                GroupMembership.athlete_id == athlete_id,
            )
            .first()
        )

    def get_memberships(self, group_id: UUID) -> list[GroupMembership]:
        return (
            self.db.query(GroupMembership)
            .filter(GroupMembership.group_id == group_id)
            .order_by(GroupMembership.created_at.asc())
            .all()
        )

    def get_memberships_for_athletes(
        self, athlete_ids: list[UUID]
    ) -> dict[tuple[UUID, UUID], GroupMembership]:
        """Memberships keyed by ``(group_id, athlete_id)``."""
        if not athlete_ids:
            return {}
        rows = (
            self.db.query(GroupMembership)
            .filter(GroupMembership.athlete_id.in_(athlete_ids))
            .all()
        )
        return {(row.group_id, row.athlete_id): row for row in rows}  # type: ignore[misc]

    def get_active_members(self, group_id: UUID) -> list[tuple[Athlete, GroupMembership]]:
        """Active athletes currently assigned to ``group_id``, with their membership row.

        A leftover membership of an athlete who moved to another group or left
        it does not count.
        """
        return (
            self.db.query(Athlete, GroupMembership)
            .join(GroupMembership, GroupMembership.athlete_id == Athlete.id)
            .filter(
                GroupMembership.group_id == group_id,
                Athlete.group_id == group_id,
                Athlete.status == AthleteStatus.ACTIVE.value,
            )
            .order_by(Athlete.name.asc())
            .all()
        )  # type: ignore[return-value]

    def add_member(
        self,
        group: Group,
        athlete_id: UUID,
        custom_fee_cents: int | None = None,
        commit: bool = True,
    ) -> GroupMembership:
        membership = GroupMembership(
            tenant_id=group.tenant_id,
            group_id=group.id,
            athlete_id=athlete_id,
            custom_fee_cents=custom_fee_cents,
        )
        self.db.add(membership)
        if commit:
            self.db.commit()
            self.db.refresh(membership)
        else:
            self.db.flush()
        return membership

    def ensure_member(self, group: Group, athlete_id: UUID) -> GroupMembership:
        """Return the membership for ``athlete_id``, creating it without committing."""
        membership = self.get_membership(group.id, athlete_id)  # type: ignore[arg-type]
        if membership is None:
            membership = self.add_member(group, athlete_id, commit=False)
        return membership

    def update_member_fee(
        self, group_id: UUID, athlete_id: UUID, custom_fee_cents: int | None
    ) -> GroupMembership | None:
        membership = self.get_membership(group_id, athlete_id)
        if membership is None:
            return None
        membership.custom_fee_cents = custom_fee_cents  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(membership)
        return membership

    def remove_memberships(self, athlete_id: UUID, group_id: UUID | None = None) -> int:
        """Delete the athlete's memberships (only in ``group_id`` when given) without committing."""
        query = self.db.query(GroupMembership).filter(GroupMembership.athlete_id == athlete_id)
        if group_id is not None:
            query = query.filter(GroupMembership.group_id == group_id)
        return query.delete(synchronize_session=False)

    def remove_member(self, group_id: UUID, athlete_id: UUID) -> bool:
        membership = self.get_membership(group_id, athlete_id)
        if membership is None:
            return False
        self.db.delete(membership)
        self.db.commit()
        return True
