"""
Bean persistence (raw SQL).

Every value coming from a request is bound as a `$n` parameter. Column names
that appear in SQL text are taken only from `schemas.BEAN_COLUMNS`.
"""

from __future__ import annotations

from typing import Any

import asyncpg

from core.db import Database

from .schemas import BEAN_COLUMNS

TABLE = "dry_beans"
PREVIEW_LIMIT = 100


def _checked_columns(fields: dict[str, Any]) -> list[str]:
    columns = list(fields)
    unknown = [c for c in columns if c not in BEAN_COLUMNS]
    if unknown:
        raise ValueError(f"Unknown bean columns: {', '.join(sorted(unknown))}")
    return columns


def build_list_query(
    *,
    bean_class: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> tuple[str, list[Any]]:
    """
    Build the list statement and its parameters.

    Pagination applies only when both `page` (1-indexed) and `limit` are given.
    """
    sql = f"SELECT * FROM {TABLE}"
    args: list[Any] = []

    if bean_class:
        args.append(bean_class)
        sql += f" WHERE bean_class = ${len(args)}"

    sql += " ORDER BY id"

    if page is not None and limit is not None:
        args.extend([limit, (page - 1) * limit])
        sql += f" LIMIT ${len(args) - 1} OFFSET ${len(args)}"

    return sql, args


async def list_beans(
    database: Database,
    *,
    bean_class: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    sql, args = build_list_query(bean_class=bean_class, page=page, limit=limit)
    return await database.fetch_all(sql, *args)


async def list_preview(database: Database) -> list[dict[str, Any]]:
    return await database.fetch_all(
        f"""
        SELECT id, bean_class
        FROM {TABLE}
        ORDER BY id
        LIMIT $1
        """,
        PREVIEW_LIMIT,
    )


async def get_bean(database: Database, bean_id: int) -> dict[str, Any] | None:
    return await database.fetch_one(
        f"""
        SELECT *
        FROM {TABLE}
        WHERE id = $1
        """,
        bean_id,
    )


async def insert_bean(conn: asyncpg.Connection, fields: dict[str, Any]) -> dict[str, Any]:
    """
    Insert one row on an open connection and return it.

    Runs on the caller's connection so the caller owns the transaction.
    """
    columns = _checked_columns(fields)
    if not columns:
        raise ValueError("insert_bean called with no fields.")

    placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
    row = await conn.fetchrow(
        f"""
        INSERT INTO {TABLE} ({", ".join(columns)})
        VALUES ({placeholders})
        RETURNING *
        """,
        *[fields[c] for c in columns],
    )
    if row is None:
        raise RuntimeError("Failed to insert bean.")
    return dict(row)


async def update_bean(conn: asyncpg.Connection, bean_id: int, fields: dict[str, Any]) -> dict[str, Any] | None:
    """
    Update the given columns and refresh `updated_at`.

    Returns the updated row, or None when no row has this id.
    """
    columns = _checked_columns(fields)
    if not columns:
        raise ValueError("update_bean called with no fields.")

    set_clause = ", ".join(f"{c} = ${i}" for i, c in enumerate(columns, start=1))
    row = await conn.fetchrow(
        f"""
        UPDATE {TABLE}
        SET {set_clause}, updated_at = now()
        WHERE id = ${len(columns) + 1}
        RETURNING *
        """,
        *[fields[c] for c in columns],
        bean_id,
    )
    return dict(row) if row is not None else None


async def delete_bean(conn: asyncpg.Connection, bean_id: int) -> bool:
    row = await conn.fetchrow(
        f"""
        DELETE FROM {TABLE}
        WHERE id = $1
        RETURNING id
        """,
        bean_id,
    )
    return row is not None


async def count_beans(database: Database) -> int:
    return int(await database.fetch_value(f"SELECT count(*) FROM {TABLE}") or 0)


async def class_counts(database: Database) -> list[dict[str, Any]]:
    return await database.fetch_all(
        f"""
        SELECT bean_class, count(*) AS count
        FROM {TABLE}
        GROUP BY bean_class
        ORDER BY count DESC, bean_class
        """
    )


async def probe(database: Database) -> dict[str, Any] | None:
    return await database.fetch_one(
        "SELECT now() AS time, pg_database_size(current_database()) AS db_size"
    )


async def copy_rows(conn: asyncpg.Connection, rows: list[tuple[Any, ...]]) -> int:
    """
    Bulk load rows (in `BEAN_COLUMNS` order) with COPY.
    """
    if not rows:
        return 0
    await conn.copy_records_to_table(TABLE, records=rows, columns=list(BEAN_COLUMNS))
    return len(rows)
