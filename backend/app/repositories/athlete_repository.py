from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by
from app.models.athlete import Athlete, AthleteStatus
from app.schemas.athlete import AthleteCreate


class AthleteRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        tenant_id: UUID,
        academy_id: UUID | None = None,
        group_id: UUID | None = None,
        status: str | None = None,
    ):  # type: ignore[no-untyped-def]
        query = self.db.query(Athlete).filter(Athlete.tenant_id == tenant_id)
        if academy_id is not None:
            query = query.filter(Athlete.academy_id == academy_id)
        if group_id is not None:
            query = query.filter(Athlete.group_id == group_id)
        if status is not None:
            query = query.filter(Athlete.status == status)
        return query

    def get_all(
        self,
        tenant_id: UUID,
        skip: int = 0,
        limit: int = 100,
        academy_id: UUID | None = None,
        group_id: UUID | None = None,
        status: str | None = None,
        order_by: str | None = None,
    ) -> list[Athlete]:
        query = self._filtered(tenant_id, academy_id, group_id, status)
        query = apply_order_by(query, Athlete, order_by)
        return query.offset(skip).limit(limit).all()

    def count(
        self,
        tenant_id: UUID,
        academy_id: UUID | None = None,
        group_id: UUID | None = None,
        status: str | None = None,
    ) -> int:
        return self._filtered(tenant_id, academy_id, group_id, status).count()

    def count_for_academy(self, academy_id: UUID) -> int:
        return (
            self.db.query(func.count(Athlete.id)).filter(Athlete.academy_id == academy_id).scalar()
            or 0
        )

    def get_active_for_academy(self, academy_id: UUID) -> list[Athlete]:
        return (
            self.db.query(Athlete)
            .filter(
                Athlete.academy_id == academy_id,
                Athlete.status == AthleteStatus.ACTIVE.value,
            )
            .order_by(Athlete.name.asc())
            .all()
        )

    def get_by_id(self, athlete_id: UUID, tenant_id: UUID | None = None) -> Athlete | None:
        query = self.db.query(Athlete).filter(Athlete.id == athlete_id)
        if tenant_id is not None:
            query = query.filter(Athlete.tenant_id == tenant_id)
        return query.first()

    def create(self, data: AthleteCreate, tenant_id: UUID) -> Athlete:
        values = data.model_dump()
        values["status"] = data.status.value
        athlete = Athlete(**values, tenant_id=tenant_id)
        self.db.add(athlete)
        self.db.commit()
        self.db.refresh(athlete)
        return athlete

    def delete(self, athlete_id: UUID, tenant_id: UUID) -> bool:
        athlete = self.get_by_id(athlete_id, tenant_id)
        if not athlete:
            return False
        self.db.delete(athlete)
        self.db.commit()
        return True
