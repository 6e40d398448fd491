"""Default visibility rule for soft-deletable entities.

Every ORM SELECT issued through a Session gets an extra ``deleted_at IS NULL``
criterion for each entity carrying :class:`SoftDeleteMixin`, including
lazy relationship loads. Column-only existence checks state
``Model.active()`` themselves. Statements executed with
``execution_options(include_deleted=True)`` see tombstones as well.
"""

from sqlalchemy import event, select, update
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria

from app.models.common import SoftDeleteMixin, utcnow

INCLUDE_DELETED = "include_deleted"


@event.listens_for(Session, "do_orm_execute")
def _exclude_deleted(execute_state: ORMExecuteState) -> None:
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get(INCLUDE_DELETED, False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                SoftDeleteMixin,
                lambda cls: cls.deleted_at.is_(None),
                include_aliases=True,
            )
        )


def soft_delete(db: Session, model: type[SoftDeleteMixin], *criteria, actor_id: str | None) -> bool:
    """Tombstone the active row matching ``criteria``; False when none matched."""
    result = db.execute(
        update(model)
        .where(model.active(), *criteria)
        .values(deleted_at=utcnow(), deleted_by=actor_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def restore(db: Session, model: type[SoftDeleteMixin], *criteria) -> bool:
    """Clear the tombstone of the deleted row matching ``criteria``."""
    result = db.execute(
        update(model)
        .where(model.deleted_at.is_not(None), *criteria)
        .values(deleted_at=None, deleted_by=None)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def find_deleted(db: Session, model: type[SoftDeleteMixin], *criteria):
    return db.scalar(
        select(model)
        .where(model.deleted_at.is_not(None), *criteria)
        .execution_options(include_deleted=True, populate_existing=True)
    )
