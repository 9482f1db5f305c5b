from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.gym_class import GymClass
from app.schemas.gym_class import GymClassCreate


class GymClassRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        tenant_id: UUID,
        skip: int = 0,
        limit: int = 100,
        academy_id: UUID | None = None,
        group_id: UUID | None = None,
    ) -> list[GymClass]:
        query = self.db.query(GymClass).filter(GymClass.tenant_id == tenant_id)
        if academy_id is not None:
            query = query.filter(GymClass.academy_id == academy_id)
        if group_id is not None:
            query = query.filter(GymClass.group_id == group_id)
        return (
            query.order_by(GymClass.weekday.asc(), GymClass.start_time.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self, tenant_id: UUID, academy_id: UUID | None = None) -> int:
        query = self.db.query(func.count(GymClass.id)).filter(GymClass.tenant_id == tenant_id)
        if academy_id is not None:
            query = query.filter(GymClass.academy_id == academy_id)
        return query.scalar() or 0

    def count_for_academy(self, academy_id: UUID) -> int:
        return (
            self.db.query(func.count(GymClass.id))
            .filter(GymClass.academy_id == academy_id)
            .scalar()
            or 0
        )

    def get_by_id(self, class_id: UUID, tenant_id: UUID | None = None) -> GymClass | None:
        query = self.db.query(GymClass).filter(GymClass.id == class_id)
        if tenant_id is not None:
            query = query.filter(GymClass.tenant_id == tenant_id)
        return query.first()

    def create(self, data: GymClassCreate, tenant_id: UUID) -> GymClass:
        gym_class = GymClass(**data.model_dump(), tenant_id=tenant_id)
        self.db.add(gym_class)
        self.db.commit()
        self.db.refresh(gym_class)
        return gym_class

    def delete(self, class_id: UUID, tenant_id: UUID) -> bool:
        gym_class = self.get_by_id(class_id, tenant_id)
        if not gym_class:
            return False
        self.db.delete(gym_class)
        self.db.commit()
        return True
