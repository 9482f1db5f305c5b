"""Plan resource limits.

A plan caps academies per tenant and athletes, classes and groups per
academy; a ``None`` limit is unlimited. Creating a resource is refused once
the current count has reached the limit, while a plan change is checked for
counts already strictly above the target plan's limits.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, PlanLimitError
from app.models.academy import Academy
from app.models.athlete import Athlete
from app.models.group import Group
from app.models.gym_class import GymClass
from app.models.plan import Plan, PlanCode
from app.repositories.subscription_repository import SubscriptionRepository

RESOURCE_ACADEMIES = "academies"
RESOURCE_ATHLETES = "athletes"
RESOURCE_CLASSES = "classes"
RESOURCE_GROUPS = "groups"

# resource -> (model, plan limit attribute)
ACADEMY_RESOURCES: dict[str, tuple[Any, str]] = {
    RESOURCE_ATHLETES: (Athlete, "athlete_limit"),
    RESOURCE_CLASSES: (GymClass, "class_limit"),
    RESOURCE_GROUPS: (Group, "group_limit"),
}


def plan_limit(plan: Plan, resource: str) -> int | None:
    if resource == RESOURCE_ACADEMIES:
        return plan.academy_limit  # type: ignore[return-value]
    return getattr(plan, ACADEMY_RESOURCES[resource][1])


def upgrade_target(plan_code: str) -> str:
    return PlanCode.PRO.value if plan_code == PlanCode.FREE.value else PlanCode.PREMIUM.value


def _items(db: Session, model: Any, *criteria: Any) -> list[dict[str, Any]]:
    rows = db.query(model.id, model.name).filter(*criteria).order_by(model.name.asc()).all()
    return [{"id": row[0], "name": row[1]} for row in rows]


def check_plan_limit_violations(db: Session, tenant_id: UUID, plan: Plan) -> list[dict[str, Any]]:
    """Resources whose current count is strictly above ``plan``'s limits."""
    violations: list[dict[str, Any]] = []
    academies = _items(db, Academy, Academy.tenant_id == tenant_id)

    if plan.academy_limit is not None and len(academies) > plan.academy_limit:
        violations.append(
            {
                "resource": RESOURCE_ACADEMIES,
                "current_count": len(academies),
                "limit": plan.academy_limit,
                "items": academies,
                "academy_id": None,
                "academy_name": None,
            }
        )

    for academy in academies:
        for resource, (model, _) in ACADEMY_RESOURCES.items():
            limit = plan_limit(plan, resource)
            if limit is None:
                continue
            items = _items(db, model, model.academy_id == academy["id"])
            if len(items) > limit:
                violations.append(
                    {
                        "resource": resource,
                        "current_count": len(items),
                        "limit": limit,
                        "items": items,
                        "academy_id": academy["id"],
                        "academy_name": academy["name"],
                    }
                )
    return violations


def _count(db: Session, tenant_id: UUID, resource: str, academy_id: UUID | None) -> int:
    if resource == RESOURCE_ACADEMIES:
        return db.query(Academy).filter(Academy.tenant_id == tenant_id).count()
    model = ACADEMY_RESOURCES[resource][0]
    return (
        db.query(model)
        .filter(model.academy_id == academy_id, model.tenant_id == tenant_id)
        .count()
    )


def current_plan(db: Session, tenant_id: UUID) -> Plan:
    repo = SubscriptionRepository(db)
    return repo.get_plan(repo.get_or_create_for_tenant(tenant_id))


def assert_within_plan_limits(
    db: Session, tenant_id: UUID, resource: str, academy_id: UUID | None = None
) -> None:
    """Raise ``PlanLimitError`` when one more ``resource`` would exceed the plan."""
    if resource != RESOURCE_ACADEMIES:
        academy = (
            db.query(Academy)
            .filter(Academy.id == academy_id, Academy.tenant_id == tenant_id)
            .first()
        )
        if academy is None:
            raise NotFoundError("Academy")

    plan = current_plan(db, tenant_id)
    limit = plan_limit(plan, resource)
    if limit is None:
        return
    count = _count(db, tenant_id, resource, academy_id)
    if count >= limit:
        raise PlanLimitError(
            f"The {plan.name} plan allows at most {limit} {resource}",
            details={
                "resource": resource,
                "current_count": count,
                "limit": limit,
                "plan_code": plan.code,
                "upgrade_to": upgrade_target(str(plan.code)),
            },
        )


def _usage(current: int, limit: int | None) -> dict[str, int | None]:
    return {
        "current": current,
        "limit": limit,
        "remaining": None if limit is None else max(limit - current, 0),
    }


def get_remaining_limits(db: Session, tenant_id: UUID) -> dict[str, Any]:
    """Current usage, limit and remaining headroom for each resource."""
    plan = current_plan(db, tenant_id)
    academies = db.query(Academy).filter(Academy.tenant_id == tenant_id).order_by(Academy.name).all()
    per_academy = []
    for academy in academies:
        entry: dict[str, Any] = {"academy_id": academy.id, "academy_name": academy.name}
        for resource in ACADEMY_RESOURCES:
            entry[resource] = _usage(
                _count(db, tenant_id, resource, academy.id),  # type: ignore[arg-type]
                plan_limit(plan, resource),
            )
        per_academy.append(entry)
    return {
        "plan_code": plan.code,
        "academies": _usage(len(academies), plan.academy_limit),  # type: ignore[arg-type]
        "per_academy": per_academy,
    }
