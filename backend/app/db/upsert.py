from __future__ import annotations

from typing import Any

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def insert_or_ignore(db: AsyncSession, table: Table, values: dict[str, Any]):
    """
    INSERT ... ON CONFLICT DO NOTHING for the session's dialect.

    Used for find-or-create against unique indexes: a losing racer inserts
    nothing instead of raising, then re-reads the winner's row.
    Keys of `values` are column names.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(table)
    elif dialect == "sqlite":
        stmt = sqlite.insert(table)
    else:
        raise NotImplementedError(f"insert_or_ignore is not supported on {dialect!r}")
    return stmt.values(values).on_conflict_do_nothing()
