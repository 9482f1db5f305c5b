from uuid import UUID

from sqlalchemy.orm import Session

from app.models.tenant import Tenant


class TenantRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, tenant_id: UUID) -> Tenant | None:
        return self.db.query(Tenant).filter(Tenant.id == tenant_id).first()

    def create(
        self,
        name: str,
        owner_email: str | None = None,
        owner_name: str | None = None,
        tenant_id: UUID | None = None,
    ) -> Tenant:
        tenant = Tenant(name=name, owner_email=owner_email, owner_name=owner_name)
        if tenant_id is not None:
            tenant.id = tenant_id  # type: ignore[assignment]
        self.db.add(tenant)
        self.db.commit()
        self.db.refresh(tenant)
        return tenant
