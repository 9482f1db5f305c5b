from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.plan import Plan
from app.repositories.plan_repository import PlanRepository
from app.schemas.plan import PlanResponse

router = APIRouter()


@router.get("/", response_model=list[PlanResponse], summary="List plans")
async def list_plans(db: Session = Depends(get_db)) -> list[Plan]:
    """Available plans, cheapest first. Missing default plans are created on first use."""
    repo = PlanRepository(db)
    repo.ensure_defaults()
    return repo.get_all()
