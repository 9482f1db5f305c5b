from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.plan import Plan, PlanCode

# code -> (name, price_cents, athletes, classes, groups, academies); None is unlimited
DEFAULT_PLANS: dict[str, tuple[str, int, int | None, int | None, int | None, int | None]] = {
    PlanCode.FREE.value: ("Free", 0, 50, 10, 3, 1),
    PlanCode.PRO.value: ("Pro", 2900, 200, 40, 10, None),
    PlanCode.PREMIUM.value: ("Premium", 5900, None, None, None, None),
}

PLAN_ORDER = [PlanCode.FREE.value, PlanCode.PRO.value, PlanCode.PREMIUM.value]


class PlanRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> list[Plan]:
        plans = self.db.query(Plan).all()
        return sorted(
            plans,
            key=lambda p: PLAN_ORDER.index(p.code) if p.code in PLAN_ORDER else len(PLAN_ORDER),
        )

    def get_by_code(self, code: str) -> Plan | None:
        return self.db.query(Plan).filter(Plan.code == code).first()

    def get_by_id(self, plan_id) -> Plan | None:  # type: ignore[no-untyped-def]
        return self.db.query(Plan).filter(Plan.id == plan_id).first()

    def get_by_stripe_price_id(self, price_id: str) -> Plan | None:
        return self.db.query(Plan).filter(Plan.stripe_price_id == price_id).first()

    @staticmethod
    def _price_ids() -> dict[str, str | None]:
        return {
            PlanCode.PRO.value: settings.stripe_price_pro or None,
            PlanCode.PREMIUM.value: settings.stripe_price_premium or None,
        }

    def ensure_defaults(self) -> int:
        """Insert any missing default plans. Returns the number created."""
        created = 0
        for code, (name, price, athletes, classes, groups, academies) in DEFAULT_PLANS.items():
            if self.get_by_code(code) is not None:
                continue
            self.db.add(
                Plan(
                    code=code,
                    name=name,
                    price_cents=price,
                    athlete_limit=athletes,
                    class_limit=classes,
                    group_limit=groups,
                    academy_limit=academies,
                    stripe_price_id=self._price_ids().get(code),
                )
            )
            created += 1
        if created:
            self.db.commit()
        return created
