"""Shared ordering helper for repository list queries."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from app.core.database import Base


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    order_by: str | None,
    default_field: str = "created_at",
    default_direction: str = "desc",
    allowed_fields: Iterable[str] | None = None,
) -> Query:  # type: ignore[type-arg]
    """Order ``query`` by a ``"field:direction"`` string such as ``"period:asc"``.

    Unknown fields (or fields outside ``allowed_fields``) fall back to the
    default column; an unknown direction falls back to the default direction.
    """
    field = default_field
    direction = default_direction
    allowed = set(allowed_fields) if allowed_fields is not None else None

    if order_by:
        candidate_field, _, candidate_direction = order_by.partition(":")
        if hasattr(model, candidate_field) and (allowed is None or candidate_field in allowed):
            field = candidate_field
            direction = candidate_direction or "asc"
            if direction not in ("asc", "desc"):
                direction = default_direction

    order_func = asc if direction == "asc" else desc
    return query.order_by(order_func(getattr(model, field)))
