from uuid import UUID

from sqlalchemy.orm import Session

from app.models.billing_item import BillingItem
from app.models.charge import Charge
from app.schemas.billing_item import BillingItemCreate, BillingItemUpdate


class BillingItemRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        tenant_id: UUID,
        skip: int = 0,
        limit: int = 100,
        academy_id: UUID | None = None,
        is_active: bool | None = None,
    ) -> list[BillingItem]:
        query = self.db.query(BillingItem).filter(BillingItem.tenant_id == tenant_id)
        if academy_id is not None:
            query = query.filter(BillingItem.academy_id == academy_id)
        if is_active is not None:
            query = query.filter(BillingItem.is_active == is_active)
        return query.order_by(BillingItem.name.asc()).offset(skip).limit(limit).all()

    def get_by_id(self, item_id: UUID, tenant_id: UUID | None = None) -> BillingItem | None:
        query = self.db.query(BillingItem).filter(BillingItem.id == item_id)
        if tenant_id is not None:
            query = query.filter(BillingItem.tenant_id == tenant_id)
        return query.first()

    def get_by_ids(self, item_ids: set[UUID]) -> dict[UUID, BillingItem]:
        if not item_ids:
            return {}
        items = self.db.query(BillingItem).filter(BillingItem.id.in_(item_ids)).all()
        return {item.id: item for item in items}  # type: ignore[misc]

    def create(self, data: BillingItemCreate, tenant_id: UUID) -> BillingItem:
        values = data.model_dump()
        values["periodicity"] = data.periodicity.value
        values["currency"] = data.currency.upper()
        item = BillingItem(**values, tenant_id=tenant_id)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def update(
        self, item_id: UUID, data: BillingItemUpdate, tenant_id: UUID
    ) -> BillingItem | None:
        item = self.get_by_id(item_id, tenant_id)
        if not item:
            return None
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("periodicity") is not None:
            update_data["periodicity"] = update_data["periodicity"].value
        if update_data.get("currency"):
            update_data["currency"] = update_data["currency"].upper()
        for key, value in update_data.items():
            setattr(item, key, value)
        self.db.commit()
        self.db.refresh(item)
        return item

    def is_referenced(self, item_id: UUID) -> bool:
        return (
            self.db.query(Charge.id).filter(Charge.billing_item_id == item_id).first() is not None
        )

    def delete(self, item_id: UUID, tenant_id: UUID) -> tuple[bool, bool]:
        """Delete ``item_id`` or, when charges reference it, deactivate it.

        Returns ``(found, deactivated)``.
        """
        item = self.get_by_id(item_id, tenant_id)
        if not item:
            return False, False
        if self.is_referenced(item_id):
            item.is_active = False  # type: ignore[assignment]
            self.db.commit()
            return True, True
        self.db.delete(item)
        self.db.commit()
        return True, False
