from uuid import UUID

from sqlalchemy.orm import Session

from app.models.guardian import AthleteGuardian, Guardian
from app.schemas.guardian import AthleteGuardianCreate, GuardianCreate, GuardianUpdate


class GuardianRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, tenant_id: UUID, skip: int = 0, limit: int = 100) -> list[Guardian]:
        return (
            self.db.query(Guardian)
            .filter(Guardian.tenant_id == tenant_id)
            .order_by(Guardian.name.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self, tenant_id: UUID) -> int:
        return self.db.query(Guardian).filter(Guardian.tenant_id == tenant_id).count()

    def get_by_id(self, guardian_id: UUID, tenant_id: UUID | None = None) -> Guardian | None:
        query = self.db.query(Guardian).filter(Guardian.id == guardian_id)
        if tenant_id is not None:
            query = query.filter(Guardian.tenant_id == tenant_id)
        return query.first()

    def create(self, data: GuardianCreate, tenant_id: UUID) -> Guardian:
        guardian = Guardian(**data.model_dump(), tenant_id=tenant_id)
        self.db.add(guardian)
        self.db.commit()
        self.db.refresh(guardian)
        return guardian

    def update(self, guardian_id: UUID, data: GuardianUpdate, tenant_id: UUID) -> Guardian | None:
        guardian = self.get_by_id(guardian_id, tenant_id)
        if not guardian:
            return None
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(guardian, key, value)
        self.db.commit()
        self.db.refresh(guardian)
        return guardian

    def delete(self, guardian_id: UUID, tenant_id: UUID) -> bool:
        guardian = self.get_by_id(guardian_id, tenant_id)
        if not guardian:
            return False
        self.db.delete(guardian)
        self.db.commit()
        return True

    # Athlete links

    def get_link(self, athlete_id: UUID, guardian_id: UUID) -> AthleteGuardian | None:
        return (
            self.db.query(AthleteGuardian)
            .filter(
                AthleteGuardian.athlete_id == athlete_id,
                AthleteGuardian.guardian_id == guardian_id,
            )
            .first()
        )

    def get_links_for_athlete(self, athlete_id: UUID) -> list[AthleteGuardian]:
        return (
            self.db.query(AthleteGuardian)
            .filter(AthleteGuardian.athlete_id == athlete_id)
            .order_by(AthleteGuardian.is_primary.desc(), AthleteGuardian.created_at.asc())
            .all()
        )

    def link(
        self, athlete_id: UUID, data: AthleteGuardianCreate, tenant_id: UUID
    ) -> AthleteGuardian:
        if data.is_primary:
            # Only one primary guardian per athlete
            self.db.query(AthleteGuardian).filter(
                AthleteGuardian.athlete_id == athlete_id,
                AthleteGuardian.is_primary == True,  # noqa: E712
            ).update({"is_primary": False})
        link = AthleteGuardian(athlete_id=athlete_id, tenant_id=tenant_id, **data.model_dump())
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link

    def unlink(self, athlete_id: UUID, guardian_id: UUID) -> bool:
        link = self.get_link(athlete_id, guardian_id)
        if link is None:
            return False
        self.db.delete(link)
        self.db.commit()
        return True

    def get_email_recipients(self, athlete_ids: list[UUID]) -> dict[UUID, list[Guardian]]:
        """Guardians with an email address and ``notify_email`` set, per athlete."""
        if not athlete_ids:
            return {}
        rows = (
            self.db.query(AthleteGuardian.athlete_id, Guardian)
            .join(Guardian, Guardian.id == AthleteGuardian.guardian_id)
            .filter(
                AthleteGuardian.athlete_id.in_(athlete_ids),
                AthleteGuardian.notify_email == True,  # noqa: E712
                Guardian.email.isnot(None),
            )
            .all()
        )
        recipients: dict[UUID, list[Guardian]] = {}
        for athlete_id, guardian in rows:
            recipients.setdefault(athlete_id, []).append(guardian)
        return recipients
