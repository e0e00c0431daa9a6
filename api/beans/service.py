"""
Bean business logic.

Scope:
- read paths (list, preview, get) on a pooled connection
- mutations (create, update, delete) each inside one transaction
- mapping driver failures onto the API error taxonomy
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg

from core import errors
from core.db import Database

from . import repository, schemas

logger = logging.getLogger(__name__)

# Driver-level failures; anything else is a bug and goes to the generic handler.
_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, TimeoutError, asyncio.TimeoutError)


@asynccontextmanager
async def _store_errors(action: str) -> AsyncIterator[None]:
    try:
        yield
    except errors.ApiError:
        raise
    except _STORE_ERRORS as exc:
        mapped = errors.from_database_error(exc)
        if mapped.status_code >= 500:
            logger.error("%s failed", action, exc_info=exc)
        else:
            logger.info("%s rejected by store: %s", action, getattr(exc, "sqlstate", None) or type(exc).__name__)
        raise mapped from exc


async def list_beans(
    database: Database,
    *,
    bean_class: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    async with _store_errors("list_beans"):
        return await repository.list_beans(database, bean_class=bean_class, page=page, limit=limit)


async def list_preview(database: Database) -> list[dict[str, Any]]:
    async with _store_errors("list_preview"):
        return await repository.list_preview(database)


async def get_bean(database: Database, bean_id: int) -> dict[str, Any]:
    async with _store_errors("get_bean"):
        row = await repository.get_bean(database, bean_id)
    if row is None:
        raise errors.NotFoundError("Bean not found")
    return row


async def create_bean(database: Database, payload: schemas.BeanCreate) -> dict[str, Any]:
    fields = payload.columns()
    async with _store_errors("create_bean"):
        async with database.transaction() as conn:
            row = await repository.insert_bean(conn, fields)

    logger.info("bean_created id=%s bean_class=%s", row["id"], row["bean_class"])
    return row


async def update_bean(database: Database, bean_id: int, payload: schemas.BeanUpdate) -> dict[str, Any]:
    fields = payload.columns()
    if not fields:
        raise errors.ValidationError("No fields to update")

    async with _store_errors("update_bean"):
        async with database.transaction() as conn:
            row = await repository.update_bean(conn, bean_id, fields)
            if row is None:
                # Raising inside the block rolls the transaction back.
                raise errors.NotFoundError("Bean not found")

    logger.info("bean_updated id=%s fields=%s", bean_id, ",".join(sorted(fields)))
    return row


async def delete_bean(database: Database, bean_id: int) -> None:
    async with _store_errors("delete_bean"):
        async with database.transaction() as conn:
            deleted = await repository.delete_bean(conn, bean_id)
            if not deleted:
                raise errors.NotFoundError("Bean not found")

    logger.info("bean_deleted id=%s", bean_id)


async def probe(database: Database) -> dict[str, Any]:
    """
    Connectivity check: server time and database size.
    """
    async with _store_errors("probe"):
        row = await repository.probe(database)
    if row is None:
        raise errors.InternalError("Database connection failed")
    return {
        "success": True,
        "message": "Database connection successful",
        "time": row["time"],
        "db_size": int(row["db_size"]),
    }
