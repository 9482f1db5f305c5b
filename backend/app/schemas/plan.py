from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class PlanResponse(BaseModel):
    id: UUID
    code: str
    name: str
    price_cents: int
    currency: str
    athlete_limit: int | None
    class_limit: int | None
    group_limit: int | None
    academy_limit: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
