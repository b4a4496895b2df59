"""
Batch loading of the bronze layer.

One run walks the manifest in order and, for every entry:
1. Clears the destination table
2. Bulk-loads the source file into it
3. Measures how long that took and how many rows were written
4. Appends exactly one record to the load log

Key resilience principles:
1. One bad file never stops the run; its failure becomes an ERROR record
2. Every entry produces exactly one log record, success or not
3. Nothing is retried; an entry is attempted once per run
4. Only failures outside the per-entry boundary (batch ID generation,
   writing the log) abort the run

Entries are processed strictly one at a time. Each entry truncates its
table, so running them side by side would let readers see a cleared but
not yet reloaded table.
"""

import uuid
from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from bronze_loader.audit import LogSink
from bronze_loader.engine import BulkLoadEngine, CopyOptions
from bronze_loader.manifest import LoadEntry, Manifest
from bronze_loader.records import (
    EntryResult,
    Failed,
    LoadLogRecord,
    Loaded,
    RunContext,
    RunSummary,
)

log = structlog.get_logger()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_batch_id() -> str:
    return str(uuid.uuid4())


def load_entry(
    engine: BulkLoadEngine,
    entry: LoadEntry,
    options: CopyOptions,
    clock: Callable[[], datetime] = utcnow,
) -> EntryResult:
    """
    Clear and reload one destination table from one source file.

    Process:
    1. Truncate schema.table (no load is attempted if this fails)
    2. Bulk-load source_path with the fixed file format
    3. Capture the end time

    Both steps run inside engine.transaction(). Any exception from
    either step is captured as a Failed outcome; it never propagates.

    Args:
        engine: Bulk-load engine
        entry: Manifest entry to load
        options: Source file format
        clock: Returns the current time

    Returns:
        EntryResult with Loaded(rows) or Failed(message)
    """
    started_at = clock()

    try:
        with engine.transaction():
            engine.truncate(entry.schema, entry.table)
            rows = engine.copy_from(entry.schema, entry.table, entry.source_path, options)
        outcome = Loaded(rows=rows)
    except Exception as e:
        outcome = Failed(message=str(e) or type(e).__name__, error_type=type(e).__name__)

    return EntryResult(
        entry=entry,
        outcome=outcome,
        started_at=started_at,
        ended_at=clock(),
    )


class BatchLoader:
    """Loads every manifest entry once and logs one record per entry."""

    def __init__(
        self,
        manifest: Manifest,
        engine: BulkLoadEngine,
        sink: LogSink,
        options: CopyOptions | None = None,
        clock: Callable[[], datetime] = utcnow,
        batch_id_factory: Callable[[], str] = new_batch_id,
    ) -> None:
        self.manifest = manifest
        self.engine = engine
        self.sink = sink
        self.options = options or CopyOptions()
        self.clock = clock
        self.batch_id_factory = batch_id_factory

    def run(self) -> RunSummary:
        """
        Run one full load of the manifest.

        Returns:
            RunSummary with the batch ID, timings and every record written

        Raises:
            Whatever batch_id_factory or the log sink raise; those abort
            the run and no completion notice is emitted.
        """
        context = RunContext(batch_id=self.batch_id_factory(), started_at=self.clock())

        log.info(
            "load_started",
            batch_id=context.batch_id,
            started_at=context.started_at.isoformat(),
            entries=len(self.manifest),
        )

        records = [self._process(context, entry) for entry in self.manifest]

        summary = RunSummary(
            batch_id=context.batch_id,
            started_at=context.started_at,
            ended_at=max(self.clock(), context.started_at),
            records=records,
        )

        log.info(
            "load_finished",
            batch_id=summary.batch_id,
            duration_seconds=summary.duration.total_seconds(),
            entries=summary.entries_attempted,
            succeeded=summary.succeeded,
            failed=summary.failed,
            rows_loaded=summary.rows_loaded,
        )

        return summary

    def _process(self, context: RunContext, entry: LoadEntry) -> LoadLogRecord:
        """Load one entry, append its record and report progress."""
        result = load_entry(self.engine, entry, self.options, self.clock)
        record = LoadLogRecord.from_result(context, result)

        # Outside the per-entry boundary: a sink failure is fatal
        self.sink.append(record)

        outcome = result.outcome
        if isinstance(outcome, Loaded):
            log.info(
                "entry_loaded",
                batch_id=context.batch_id,
                table=entry.qualified_name,
                rows=outcome.rows,
                duration_seconds=result.duration.total_seconds(),
            )
        else:
            log.error(
                "entry_failed",
                batch_id=context.batch_id,
                table=entry.qualified_name,
                source=entry.source_path,
                error=outcome.message,
                error_type=outcome.error_type,
                duration_seconds=result.duration.total_seconds(),
            )

        return record
