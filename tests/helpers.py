"""Test doubles and CSV helpers shared across the suite."""

import contextlib
from datetime import datetime, timedelta, timezone

from bronze_loader.engine import CopyOptions
from bronze_loader.records import LoadLogRecord

LOCATION_HEADER = [
    "uuid", "extId", "locationName", "locationtype", "accuracy",
    "altitude", "latitude", "longitude", "insertDate",
]


def location_row(n: int, insert_date: str = "2024-01-15") -> list[str]:
    return [
        f"loc-{n}", f"EXT{n:03d}", f"Village {n}", "RUR", "5",
        "NULL", "12.3", "-1.5", insert_date,
    ]


class TickingClock:
    """Returns start, start+step, start+2*step, ... on successive calls."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(milliseconds=250)):
        self.now = start or datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


class FakeEngine:
    """
    Engine double that records calls.

    rows maps "schema.table" to the count copy_from reports; tables in
    fail_truncate / fail_copy raise instead.
    """

    def __init__(
        self,
        rows: dict[str, int] | None = None,
        fail_truncate: set[str] | None = None,
        fail_copy: set[str] | None = None,
    ):
        self.rows = rows or {}
        self.fail_truncate = fail_truncate or set()
        self.fail_copy = fail_copy or set()
        self.calls: list[tuple[str, ...]] = []

    @contextlib.contextmanager
    def transaction(self):
        self.calls.append(("begin",))
        try:
            yield
        except Exception:
            self.calls.append(("rollback",))
            raise
        self.calls.append(("commit",))

    def truncate(self, schema: str, table: str) -> None:
        name = f"{schema}.{table}"
        self.calls.append(("truncate", name))
        if name in self.fail_truncate:
            raise RuntimeError(f'relation "{name}" does not exist')

    def copy_from(self, schema: str, table: str, source_path: str, options: CopyOptions) -> int:
        name = f"{schema}.{table}"
        self.calls.append(("copy", name, source_path))
        if name in self.fail_copy:
            raise OSError(f'could not open file "{source_path}" for reading: No such file or directory')
        return self.rows.get(name, 0)


class MemorySink:
    """Log sink that keeps records in a list; fails on the Nth append if asked."""

    def __init__(self, fail_on: int | None = None):
        self.records: list[LoadLogRecord] = []
        self.fail_on = fail_on

    def append(self, record: LoadLogRecord) -> None:
        if self.fail_on is not None and len(self.records) + 1 == self.fail_on:
            raise ConnectionError("log table unavailable")
        self.records.append(record)
