"""
Suggestion pipeline database handler.

All pipeline persistence goes through this module: project lookups for access
validation, sibling order keys, batched inserts and updates by id on the
``projects``, ``properties`` and ``client_requirements`` tables.

Project visibility is scoped by ``owner_user_id``; a project that exists but
belongs to someone else is returned exactly like a missing one.
Write helpers commit on success, roll back on failure and re-raise so the
caller can categorise the error.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import Table, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leasetrack.models import Project, Property
from leasetrack.services.entities import EntityType, get_entity_spec

logger = logging.getLogger(__name__)


def _visible_projects(owner_user_id: str | None):
    stmt = select(Project.id).where(Project.deleted_at.is_(None))
    if owner_user_id is not None:
        stmt = stmt.where(Project.owner_user_id == owner_user_id)
    return stmt


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def fetch_project(
    db: AsyncSession,
    project_id: str,
    *,
    owner_user_id: str | None = None,
) -> str | None:
    """Return the project id if visible to the caller, else None."""
    stmt = _visible_projects(owner_user_id).where(Project.id == project_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def fetch_project_ids(
    db: AsyncSession,
    project_ids: Iterable[str],
    *,
    owner_user_id: str | None = None,
) -> set[str]:
    """Subset of *project_ids* visible to the caller (one membership query)."""
    ids = list(project_ids)
    if not ids:
        return set()
    stmt = _visible_projects(owner_user_id).where(Project.id.in_(ids))
    result = await db.execute(stmt)
    return {str(pid) for pid in result.scalars().all()}


async def fetch_sibling_order_keys(db: AsyncSession, project_id: str) -> list[dict[str, str]]:
    """Existing ``order_key`` values of the properties of one project."""
    result = await db.execute(
        select(Property.order_key).where(Property.project_id == project_id)
    )
    return [{"order_key": key} for key in result.scalars().all() if key]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _column_default(table: Table, name: str) -> Any:
    column = table.c.get(name)
    default = column.default if column is not None else None
    if default is None:
        return None
    if default.is_scalar:
        return default.arg
    if default.is_callable:
        # SQLAlchemy wraps zero-arg callables to take the execution context
        return default.arg(None)
    return None


def align_rows(table: Table, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Give every row the union of all rows' keys.

    A multi-row insert binds the columns of its first parameter set, so rows
    with differing keys would lose or reject values. Missing columns take the
    column's default, else ``None``.
    """
    keys = list(dict.fromkeys(key for row in rows for key in row))
    return [
        {key: row[key] if key in row else _column_default(table, key) for key in keys}
        for row in rows
    ]


async def insert_rows(
    db: AsyncSession,
    entity_type: EntityType | str,
    rows: list[dict[str, Any]],
) -> int:
    """Insert *rows* in one statement and commit. Returns the row count."""
    if not rows:
        return 0
    table = get_entity_spec(entity_type).model.__table__
    try:
        await db.execute(insert(table), align_rows(table, rows))
        await db.commit()
    except Exception:
        await safe_rollback(db)
        raise
    return len(rows)


async def update_row(
    db: AsyncSession,
    entity_type: EntityType | str,
    entity_id: str,
    values: dict[str, Any],
) -> int:
    """Update one row by id and commit. Returns the number of matched rows.

    Empty *values* issue no statement and match nothing.
    """
    if not values:
        return 0
    table = get_entity_spec(entity_type).model.__table__
    try:
        result = await db.execute(
            update(table).where(table.c.id == entity_id).values(**values)
        )
        await db.commit()
    except Exception:
        await safe_rollback(db)
        raise
    return result.rowcount or 0


async def safe_rollback(db: AsyncSession) -> None:
    """Roll back the session; never raises."""
    try:
        await db.rollback()
    except Exception as e:
        logger.warning("[storage] Rollback failed: %s", e)
