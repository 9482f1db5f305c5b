from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by
from app.models.academy import Academy
from app.schemas.academy import AcademyCreate, AcademyUpdate


class AcademyRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        tenant_id: UUID,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
    ) -> list[Academy]:
        query = self.db.query(Academy).filter(Academy.tenant_id == tenant_id)
        query = apply_order_by(query, Academy, order_by)
        return query.offset(skip).limit(limit).all()

    def count(self, tenant_id: UUID) -> int:
        return (
            self.db.query(func.count(Academy.id)).filter(Academy.tenant_id == tenant_id).scalar()
            or 0
        )

    def get_by_id(self, academy_id: UUID, tenant_id: UUID | None = None) -> Academy | None:
        query = self.db.query(Academy).filter(Academy.id == academy_id)
        if tenant_id is not None:
            query = query.filter(Academy.tenant_id == tenant_id)
        return query.first()

    def slug_exists(self, slug: str) -> bool:
        return self.db.query(Academy).filter(Academy.slug == slug).first() is not None

    def get_public(
        self,
        city: str | None = None,
        country: str | None = None,
        academy_type: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Academy]:
        query = self.db.query(Academy).filter(Academy.is_public == True)  # noqa: E712
        if city:
            query = query.filter(func.lower(Academy.city) == city.lower())
        if country:
            query = query.filter(Academy.country == country.upper())
        if academy_type:
            query = query.filter(Academy.academy_type == academy_type)
        return query.order_by(Academy.name.asc()).offset(skip).limit(limit).all()

    def get_public_by_slug(self, slug: str) -> Academy | None:
        return (
            self.db.query(Academy)
            .filter(Academy.slug == slug, Academy.is_public == True)  # noqa: E712
            .first()
        )

    def create(self, data: AcademyCreate, tenant_id: UUID) -> Academy:
        values = data.model_dump()
        values["academy_type"] = data.academy_type.value
        if data.country:
            values["country"] = data.country.upper()
        academy = Academy(**values, tenant_id=tenant_id)
        self.db.add(academy)
        self.db.commit()
        self.db.refresh(academy)
        return academy

    def update(self, academy_id: UUID, data: AcademyUpdate, tenant_id: UUID) -> Academy | None:
        academy = self.get_by_id(academy_id, tenant_id)
        if not academy:
            return None
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("academy_type") is not None:
            update_data["academy_type"] = update_data["academy_type"].value
        if update_data.get("country"):
            update_data["country"] = update_data["country"].upper()
        for key, value in update_data.items():
            setattr(academy, key, value)
        self.db.commit()
        self.db.refresh(academy)
        return academy

    def delete(self, academy_id: UUID, tenant_id: UUID) -> bool:
        academy = self.get_by_id(academy_id, tenant_id)
        if not academy:
            return False
        self.db.delete(academy)
        self.db.commit()
        return True
