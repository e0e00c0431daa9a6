from __future__ import annotations

import logging

import pytest

from beans import bootstrap
from beans.schemas import BEAN_COLUMNS

UCI_HEADER = (
    "Area,Perimeter,MajorAxisLength,MinorAxisLength,AspectRation,Eccentricity,ConvexArea,"
    "EquivDiameter,Extent,Solidity,roundness,Compactness,ShapeFactor1,ShapeFactor2,"
    "ShapeFactor3,ShapeFactor4,Class"
)
UCI_ROW = (
    "28395,610.291,208.1781167,173.888747,1.197191424,0.549812187,28715,190.1410973,"
    "0.763922518,0.988855999,0.958027126,0.913357755,0.007331506,0.003147289,"
    "0.834222388,0.998723889,SEKER"
)


@pytest.fixture
def dataset(tmp_path):
    path = tmp_path / "Dry_Bean_Dataset.csv"
    path.write_text(f"{UCI_HEADER}\n{UCI_ROW}\n{UCI_ROW.replace('SEKER', 'bombay')}\n", encoding="utf-8")
    return path


def test_read_dataset_maps_uci_headers_to_columns(dataset) -> None:
    rows = bootstrap.read_dataset(dataset)

    assert len(rows) == 2
    first = dict(zip(BEAN_COLUMNS, rows[0]))
    assert first["area"] == 28395.0
    assert first["aspect_ratio"] == pytest.approx(1.197191424)
    assert first["roundness"] == pytest.approx(0.958027126)
    assert first["bean_class"] == "SEKER"
    assert rows[1][-1] == "BOMBAY"


def test_read_dataset_reports_bad_numbers_with_line(tmp_path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("Area,Class\nabc,SEKER\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"bad.csv:2"):
        bootstrap.read_dataset(path)


def test_read_dataset_requires_class_column(tmp_path) -> None:
    path = tmp_path / "noclass.csv"
    path.write_text("Area\n1\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Class"):
        bootstrap.read_dataset(path)


@pytest.mark.asyncio
async def test_load_dataset_copies_into_empty_table(database, fake_conn, dataset) -> None:
    fake_conn.script("LOCK TABLE", 0)

    loaded = await bootstrap.load_dataset(database, dataset)

    assert loaded == 2
    assert fake_conn.copied[0][0] == "dry_beans"
    assert fake_conn.events == ["begin", "commit"]


@pytest.mark.asyncio
async def test_load_dataset_is_skipped_when_rows_exist(database, fake_conn, dataset) -> None:
    fake_conn.script("LOCK TABLE", 13611)

    assert await bootstrap.load_dataset(database, dataset) == 0
    assert fake_conn.copied == []


@pytest.mark.asyncio
async def test_run_sql_file_executes_script(database, fake_conn, tmp_path) -> None:
    script = tmp_path / "setup.sql"
    script.write_text("CREATE TABLE IF NOT EXISTS t (id int);", encoding="utf-8")

    assert await bootstrap.run_sql_file(database, script) is True
    assert fake_conn.calls == [("execute", "CREATE TABLE IF NOT EXISTS t (id int);", ())]


@pytest.mark.asyncio
async def test_run_sql_file_skips_missing_file(database, fake_conn, tmp_path) -> None:
    assert await bootstrap.run_sql_file(database, tmp_path / "missing.sql") is False
    assert fake_conn.calls == []


@pytest.mark.asyncio
async def test_log_stats_logs_per_class_counts(database, fake_conn, caplog) -> None:
    fake_conn.script(3, [{"bean_class": "SEKER", "count": 2}, {"bean_class": "CALI", "count": 1}])

    with caplog.at_level(logging.INFO, logger="beans.bootstrap"):
        await bootstrap.log_stats(database)

    assert "total=3 distinct_classes=2" in caplog.text
    assert "bean_class=SEKER count=2" in caplog.text


def test_bundled_schema_is_idempotent() -> None:
    from core import settings

    sql = settings.DEFAULT_BOOTSTRAP_SQL.read_text(encoding="utf-8")

    assert "CREATE TABLE IF NOT EXISTS dry_beans" in sql
    assert "CREATE INDEX IF NOT EXISTS" in sql
    for column in BEAN_COLUMNS:
        assert column in sql
