"""
Database Utility Functions.

Dialect-aware upserts and timestamp helpers shared by the SQL stores.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite drops tzinfo, so we store naive UTC everywhere)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def upsert(
    session: Session,
    model: Any,
    rows: Sequence[dict[str, Any]],
    index_elements: Iterable[str],
    update_fields: Iterable[str],
) -> None:
    """
    INSERT ... ON CONFLICT (index_elements) DO UPDATE SET update_fields.

    Runs as a single statement so concurrent writers of the same key
    resolve inside the database instead of racing a read-modify-write.
    """
    if not rows:
        return

    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        insert = postgresql.insert
    elif dialect == "sqlite":
        insert = sqlite.insert
    else:
        raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'")

    stmt = insert(model).values(list(rows))
    update_fields = list(update_fields)
    if update_fields:
        stmt = stmt.on_conflict_do_update(
            index_elements=list(index_elements),
            set_={field: getattr(stmt.excluded, field) for field in update_fields},
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(index_elements))
    session.execute(stmt)
