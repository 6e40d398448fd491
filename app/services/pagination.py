from typing import TypeVar

from pydantic import BaseModel
from sqlalchemy import Select
from sqlalchemy.orm import Session

from app.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Page

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def clamp_limit(limit: int | None) -> int:
    if not limit or limit < 1:
        return DEFAULT_PAGE_SIZE
    return min(limit, MAX_PAGE_SIZE)


def paginate(
    db: Session,
    stmt: Select,
    id_column,
    schema: type[SchemaT],
    cursor: str | None,
    limit: int | None,
) -> Page[SchemaT]:
    """Keyset pagination ascending by id; ``cursor`` is the last id seen."""
    size = clamp_limit(limit)
    if cursor:
        stmt = stmt.where(id_column > cursor)
    rows = db.scalars(stmt.order_by(id_column.asc()).limit(size + 1)).all()

    has_more = len(rows) > size
    rows = rows[:size]
    next_cursor = rows[-1].id if has_more else None
    return Page[schema](
        items=[schema.model_validate(row) for row in rows],
        next_cursor=next_cursor,
        has_more=has_more,
    )
