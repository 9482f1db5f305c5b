from datetime import date
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from app.models.class_session import ClassSession
from app.models.gym_class import GymClass
from app.schemas.class_session import ClassSessionCreate, ClassSessionUpdate


class ClassSessionRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        query: Query,
        tenant_id: UUID,
        academy_id: UUID | None = None,
        class_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Query:
        query = query.filter(ClassSession.tenant_id == tenant_id)
        if academy_id is not None:
            query = query.filter(ClassSession.academy_id == academy_id)
        if class_id is not None:
            query = query.filter(ClassSession.class_id == class_id)
        if date_from is not None:
            query = query.filter(ClassSession.session_date >= date_from)
        if date_to is not None:
            query = query.filter(ClassSession.session_date <= date_to)
        return query

    def get_all(
        self,
        tenant_id: UUID,
        skip: int = 0,
        limit: int = 100,
        academy_id: UUID | None = None,
        class_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[ClassSession]:
        query = self._filtered(
            self.db.query(ClassSession), tenant_id, academy_id, class_id, date_from, date_to
        )
        return (
            query.order_by(ClassSession.session_date.asc(), ClassSession.start_time.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(
        self,
        tenant_id: UUID,
        academy_id: UUID | None = None,
        class_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> int:
        query = self._filtered(
            self.db.query(func.count(ClassSession.id)),
            tenant_id,
            academy_id,
            class_id,
            date_from,
            date_to,
        )
        return query.scalar() or 0

    def get_by_id(self, session_id: UUID, tenant_id: UUID | None = None) -> ClassSession | None:
        query = self.db.query(ClassSession).filter(ClassSession.id == session_id)
        if tenant_id is not None:
            query = query.filter(ClassSession.tenant_id == tenant_id)
        return query.first()

    def create(self, data: ClassSessionCreate, gym_class: GymClass) -> ClassSession:
        values = data.model_dump()
        values["status"] = data.status.value
        values["start_time"] = data.start_time or gym_class.start_time
        values["end_time"] = data.end_time or gym_class.end_time
        session = ClassSession(
            **values, tenant_id=gym_class.tenant_id, academy_id=gym_class.academy_id
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        return session

    def update(
        self, session_id: UUID, data: ClassSessionUpdate, tenant_id: UUID
    ) -> ClassSession | None:
        session = self.get_by_id(session_id, tenant_id)
        if not session:
            return None
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(session, key, value.value if key == "status" and value else value)
        self.db.commit()
        self.db.refresh(session)
        return session

    def delete(self, session_id: UUID, tenant_id: UUID) -> bool:
        session = self.get_by_id(session_id, tenant_id)
        if not session:
            return False
        self.db.delete(session)
        self.db.commit()
        return True
