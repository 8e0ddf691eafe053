"""Database utility functions for cross-database compatibility."""

import logging
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from football_predictions.models import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


async def upsert(
    session: AsyncSession,
    model: type[T],
    values: dict[str, Any],
    conflict_columns: list[str],
    update_columns: list[str] | None = None,
) -> None:
    """
    Database-agnostic upsert operation.

    Uses the dialect's native INSERT ... ON CONFLICT on PostgreSQL and SQLite,
    falls back to SELECT + INSERT/UPDATE for any other backend.

    Args:
        session: AsyncSession instance
        model: SQLModel table class
        values: Dictionary of column values to insert/update
        conflict_columns: Columns that define uniqueness (for conflict detection)
        update_columns: Columns to update on conflict (defaults to all non-conflict
            columns). An empty list means insert-if-missing.

    Example:
        await upsert(
            session,
            Prediction,
            {"match_id": 123, "home_win_probability": 0.5, ...},
            conflict_columns=["match_id"],
        )
    """
    if update_columns is None:
        update_columns = [k for k in values.keys() if k not in conflict_columns]

    touches_updated_at = bool(update_columns) and hasattr(model, "updated_at")

    # Core inserts skip the models' Python-side default factories
    values = dict(values)
    now = utc_now()
    for col in ("created_at", "updated_at"):
        if hasattr(model, col):
            values.setdefault(col, now)

    insert_fn = _DIALECT_INSERTS.get(session.get_bind().dialect.name)
    if insert_fn is not None:
        stmt = insert_fn(model).values(**values)

        if update_columns:
            update_dict = {col: getattr(stmt.excluded, col) for col in update_columns}
            # ON CONFLICT ignores Python-side onupdate hooks
            if touches_updated_at and "updated_at" not in update_dict:
                update_dict["updated_at"] = utc_now()
            stmt = stmt.on_conflict_do_update(
                index_elements=conflict_columns,
                set_=update_dict,
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=conflict_columns)

        await session.execute(stmt)
        return

    logger.debug(f"No native upsert for {model.__name__}, using SELECT + INSERT/UPDATE")

    filters = [getattr(model, col) == values[col] for col in conflict_columns]
    result = await session.execute(select(model).where(*filters))
    existing = result.scalar_one_or_none()

    if existing is None:
        session.add(model(**values))
        return

    for col in update_columns:
        if col in values:
            setattr(existing, col, values[col])
    if touches_updated_at:
        existing.updated_at = utc_now()
