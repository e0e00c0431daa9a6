"""
Pytest configuration for the Dry Beans API.

Provides an in-memory stand-in for the asyncpg pool so the real `Database`,
service and routes can run without PostgreSQL. Each fake connection call pops
the next scripted response (or raises it, when it is an exception).
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from core.db import Database
from main import create_app

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def bean_row(bean_id: int = 1, bean_class: str = "SEKER", **fields: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": bean_id,
        "area": 28395.0,
        "perimeter": 610.291,
        "major_axis_length": None,
        "minor_axis_length": None,
        "aspect_ratio": None,
        "eccentricity": None,
        "convex_area": None,
        "equiv_diameter": None,
        "extent": None,
        "solidity": None,
        "roundness": None,
        "compactness": None,
        "shape_factor1": None,
        "shape_factor2": None,
        "shape_factor3": None,
        "shape_factor4": None,
        "bean_class": bean_class,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(fields)
    return row


class _FakeTransaction(AbstractAsyncContextManager[None]):
    def __init__(self, conn: FakeConnection) -> None:
        self._conn = conn

    async def __aenter__(self) -> None:
        self._conn.events.append("begin")

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        del tb
        self._conn.events.append("commit" if exc_type is None else "rollback")
        return False


class FakeConnection:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []
        self.responses: list[Any] = []
        self.events: list[str] = []
        self.copied: list[tuple[str, list[tuple[Any, ...]], list[str]]] = []

    def script(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def _next(self, kind: str, sql: str, args: tuple[Any, ...]) -> Any:
        self.calls.append((kind, sql, args))
        if not self.responses:
            return None
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    def transaction(self) -> _FakeTransaction:
        return _FakeTransaction(self)

    async def fetchrow(self, sql: str, *args: Any) -> Any:
        return self._next("fetchrow", sql, args)

    async def fetch(self, sql: str, *args: Any) -> Any:
        return self._next("fetch", sql, args) or []

    async def fetchval(self, sql: str, *args: Any) -> Any:
        return self._next("fetchval", sql, args)

    async def execute(self, sql: str, *args: Any) -> str:
        result = self._next("execute", sql, args)
        return result if result is not None else "OK"

    async def copy_records_to_table(self, table: str, *, records: list, columns: list[str]) -> str:
        self.copied.append((table, list(records), list(columns)))
        return f"COPY {len(records)}"


class _AcquireContext(AbstractAsyncContextManager[FakeConnection]):
    def __init__(self, pool: FakePool) -> None:
        self._pool = pool

    async def __aenter__(self) -> FakeConnection:
        if self._pool.acquire_error is not None:
            raise self._pool.acquire_error
        self._pool.acquired += 1
        return self._pool.conn

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        del exc_type, exc, tb
        self._pool.released += 1
        return False


class FakePool:
    def __init__(self) -> None:
        self.conn = FakeConnection()
        self.acquired = 0
        self.released = 0
        self.acquire_timeouts: list[float | None] = []
        self.acquire_error: BaseException | None = None
        self.closed = False

    def acquire(self, *, timeout: float | None = None) -> _AcquireContext:
        self.acquire_timeouts.append(timeout)
        return _AcquireContext(self)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def fake_conn(fake_pool: FakePool) -> FakeConnection:
    return fake_pool.conn


@pytest.fixture
def database(fake_pool: FakePool) -> Database:
    db = Database("postgresql://test", min_size=1, max_size=2, acquire_timeout=2.0, idle_lifetime=30.0)
    db._pool = fake_pool  # type: ignore[assignment]
    return db


@pytest.fixture
def client(database: Database) -> TestClient:
    # No `with`: the lifespan (real pool + bootstrap) is not run.
    return TestClient(create_app(database))
