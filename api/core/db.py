"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns one connection pool. `api/main.py` constructs it, connects on
startup, closes it on shutdown and publishes it as `app.state.db`; request
handlers receive it through `get_database`.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg
from fastapi import Request

from . import settings


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class Database:
    def __init__(
        self,
        dsn: str | None = None,
        *,
        min_size: int | None = None,
        max_size: int | None = None,
        acquire_timeout: float | None = None,
        idle_lifetime: float | None = None,
        command_timeout: float = 30,
    ) -> None:
        self._dsn = dsn
        self.min_size = min_size if min_size is not None else settings.pool_min_size()
        self.max_size = max_size if max_size is not None else settings.pool_max_size()
        self.acquire_timeout = acquire_timeout if acquire_timeout is not None else settings.acquire_timeout()
        self.idle_lifetime = idle_lifetime if idle_lifetime is not None else settings.idle_lifetime()
        self.command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        if self._pool is not None:
            return None
        self._pool = await asyncpg.create_pool(
            dsn=self._dsn or settings.database_url(),
            min_size=self.min_size,
            max_size=self.max_size,
            max_inactive_connection_lifetime=self.idle_lifetime,
            command_timeout=self.command_timeout,
        )

    async def close(self) -> None:
        if self._pool is None:
            return None
        pool, self._pool = self._pool, None
        await pool.close()

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call connect() on startup.")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Check out one connection for the duration of the block.

        Waits at most `acquire_timeout` seconds for a free connection
        (asyncio.TimeoutError otherwise). Released on every exit path.
        """
        async with self.pool.acquire(timeout=self.acquire_timeout) as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Acquire a connection and run the block inside one transaction.

        Commits on normal exit, rolls back if the block raises.
        """
        async with self.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        async with self.acquire() as conn:
            row = await conn.fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        async with self.acquire() as conn:
            rows = await conn.fetch(sql, *args)
        return [_record_to_dict(r) for r in rows]

    async def fetch_value(self, sql: str, *args: Any) -> Any:
        async with self.acquire() as conn:
            return await conn.fetchval(sql, *args)

    async def execute(self, sql: str, *args: Any) -> str:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL) and return its status tag.
        """
        async with self.acquire() as conn:
            return await conn.execute(sql, *args)


def get_database(request: Request) -> Database:
    return request.app.state.db
