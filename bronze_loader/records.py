"""
Records produced by a load run.

- RunContext: the batch identity and start time, created once per run
- Loaded / Failed: outcome of the per-entry unit of work
- EntryResult: an outcome plus its timing
- LoadLogRecord: the audit row written to etl_log, one per entry
- RunSummary: what run() returns
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from bronze_loader.manifest import LoadEntry


SUCCESS_MESSAGE = "Loaded successfully"


class LoadStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class RunContext:
    """Identity of one run. Read-only once created."""
    batch_id: str
    started_at: datetime


@dataclass(frozen=True)
class Loaded:
    """The destination was cleared and reloaded."""
    rows: int


@dataclass(frozen=True)
class Failed:
    """The clear or the load raised; message is the engine's error text."""
    message: str
    error_type: str


@dataclass(frozen=True)
class EntryResult:
    """Outcome of one entry with its start and end time."""
    entry: LoadEntry
    outcome: Loaded | Failed
    started_at: datetime
    ended_at: datetime

    def __post_init__(self):
        # Wall clocks can step backwards; a duration is never negative
        if self.ended_at < self.started_at:
            object.__setattr__(self, "ended_at", self.started_at)

    @property
    def duration(self) -> timedelta:
        return self.ended_at - self.started_at

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, Loaded)


@dataclass(frozen=True)
class LoadLogRecord:
    """
    One etl_log row describing one load step.

    Field names match the etl_log columns. Build records with
    from_result() so status, message and rows_loaded stay consistent.
    """
    batch_id: str
    schema_name: str
    table_name: str
    file_name: str
    status: LoadStatus
    message: str
    start_time: datetime
    end_time: datetime
    duration: timedelta
    rows_loaded: int

    @classmethod
    def from_result(cls, context: RunContext, result: EntryResult) -> "LoadLogRecord":
        outcome = result.outcome
        if isinstance(outcome, Loaded):
            status, message, rows = LoadStatus.SUCCESS, SUCCESS_MESSAGE, outcome.rows
        else:
            status, message, rows = LoadStatus.ERROR, outcome.message, 0

        return cls(
            batch_id=context.batch_id,
            schema_name=result.entry.schema,
            table_name=result.entry.table,
            file_name=result.entry.source_path,
            status=status,
            message=message,
            start_time=result.started_at,
            end_time=result.ended_at,
            duration=result.duration,
            rows_loaded=rows,
        )

    def as_row(self) -> dict[str, Any]:
        """Column name -> value, ready for a parameterised insert."""
        return {
            "batch_id": self.batch_id,
            "schema_name": self.schema_name,
            "table_name": self.table_name,
            "file_name": self.file_name,
            "status": self.status.value,
            "message": self.message,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "rows_loaded": self.rows_loaded,
        }


@dataclass
class RunSummary:
    """Result of one BatchLoader.run()."""
    batch_id: str
    started_at: datetime
    ended_at: datetime
    records: list[LoadLogRecord] = field(default_factory=list)

    @property
    def duration(self) -> timedelta:
        return self.ended_at - self.started_at

    @property
    def entries_attempted(self) -> int:
        return len(self.records)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.records if r.status is LoadStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.records if r.status is LoadStatus.ERROR)

    @property
    def rows_loaded(self) -> int:
        return sum(r.rows_loaded for r in self.records)

    @property
    def failures(self) -> list[LoadLogRecord]:
        return [r for r in self.records if r.status is LoadStatus.ERROR]
