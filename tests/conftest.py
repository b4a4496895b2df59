"""Shared fixtures: an in-memory DuckDB with the bronze tables, CSV writers, a clock."""

from collections.abc import Generator
from pathlib import Path

import pytest

from bronze_loader.audit import DuckDBLogSink
from bronze_loader.ddl import create_bronze_tables
from bronze_loader.engine import DuckDBEngine
from tests.helpers import LOCATION_HEADER, TickingClock


@pytest.fixture
def engine() -> Generator[DuckDBEngine]:
    duck = DuckDBEngine(":memory:")
    create_bronze_tables(duck.conn)
    yield duck
    duck.close()


@pytest.fixture
def sink(engine: DuckDBEngine) -> DuckDBLogSink:
    return DuckDBLogSink(engine.conn)


@pytest.fixture
def write_csv(tmp_path: Path):
    """Write a semicolon-delimited file with a header line; returns its path."""

    def _write(name: str, rows: list[list[str]], header: list[str] = LOCATION_HEADER) -> str:
        path = tmp_path / name
        lines = [";".join(header)] + [";".join(row) for row in rows]
        path.write_text("\n".join(lines) + "\n")
        return str(path)

    return _write


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()
