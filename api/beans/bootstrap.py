"""
Startup tasks: schema bootstrap, optional dataset load, table stats.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any

from core.db import Database

from . import repository
from .schemas import BEAN_COLUMNS, NUMERIC_FIELDS

logger = logging.getLogger(__name__)

# UCI "Dry Bean Dataset" headers -> column names. Matched case-insensitively;
# "AspectRation" is the dataset's own spelling.
CSV_HEADERS: dict[str, str] = {
    "area": "area",
    "perimeter": "perimeter",
    "majoraxislength": "major_axis_length",
    "minoraxislength": "minor_axis_length",
    "aspectration": "aspect_ratio",
    "aspectratio": "aspect_ratio",
    "eccentricity": "eccentricity",
    "convexarea": "convex_area",
    "equivdiameter": "equiv_diameter",
    "extent": "extent",
    "solidity": "solidity",
    "roundness": "roundness",
    "compactness": "compactness",
    "shapefactor1": "shape_factor1",
    "shapefactor2": "shape_factor2",
    "shapefactor3": "shape_factor3",
    "shapefactor4": "shape_factor4",
    "class": "bean_class",
}


async def run_sql_file(database: Database, path: Path) -> bool:
    """
    Execute a SQL script on one connection. The script must be idempotent.

    Returns False (and logs) when the file does not exist.
    """
    if not path.is_file():
        logger.warning("bootstrap_sql_missing path=%s", path)
        return False

    sql = path.read_text(encoding="utf-8")
    async with database.acquire() as conn:
        await conn.execute(sql)
    logger.info("bootstrap_sql_executed path=%s", path)
    return True


def _normalize_header(name: str) -> str:
    return "".join(ch for ch in name.lower() if ch.isalnum())


def _parse_float(raw: str | None) -> float | None:
    raw = (raw or "").strip()
    return float(raw) if raw else None


def read_dataset(path: Path) -> list[tuple[Any, ...]]:
    """
    Parse the dataset CSV into tuples in `BEAN_COLUMNS` order.
    """
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        mapping = {
            header: CSV_HEADERS[_normalize_header(header)]
            for header in (reader.fieldnames or [])
            if _normalize_header(header) in CSV_HEADERS
        }
        if "bean_class" not in mapping.values():
            raise ValueError(f"{path}: no Class column in CSV header.")

        rows: list[tuple[Any, ...]] = []
        for line_no, raw in enumerate(reader, start=2):
            record = {column: raw.get(header) for header, column in mapping.items()}
            try:
                values = {name: _parse_float(record.get(name)) for name in NUMERIC_FIELDS}
            except ValueError as exc:
                raise ValueError(f"{path}:{line_no}: {exc}") from exc
            values["bean_class"] = (record.get("bean_class") or "").strip().upper()
            rows.append(tuple(values[c] for c in BEAN_COLUMNS))
    return rows


async def load_dataset(database: Database, path: Path) -> int:
    """
    Load the CSV dataset into an empty table; a non-empty table is left alone.

    Returns the number of rows loaded.
    """
    rows = read_dataset(path)
    async with database.transaction() as conn:
        # Serialize concurrent loaders; the count check then sees committed data.
        await conn.execute(f"LOCK TABLE {repository.TABLE} IN SHARE ROW EXCLUSIVE MODE")
        existing = await conn.fetchval(f"SELECT count(*) FROM {repository.TABLE}")
        if existing:
            logger.info("dataset_load_skipped rows_present=%s", existing)
            return 0
        loaded = await repository.copy_rows(conn, rows)
    logger.info("dataset_loaded rows=%s path=%s", loaded, path)
    return loaded


async def log_stats(database: Database) -> None:
    total = await repository.count_beans(database)
    counts = await repository.class_counts(database)
    logger.info("bean_stats total=%s distinct_classes=%s", total, len(counts))
    for row in counts:
        logger.info("bean_stats bean_class=%s count=%s", row["bean_class"], row["count"])
