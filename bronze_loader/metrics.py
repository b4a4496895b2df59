"""Run metrics pushed to a line-protocol metrics endpoint."""

from pathlib import Path
from typing import Any

import structlog

from bronze_loader.records import RunSummary

log = structlog.get_logger()


class MetricsClient:
    """Buffer gauge lines and push them in one request."""

    def __init__(self, endpoint: str | None, token_path: str | None) -> None:
        self.endpoint = endpoint
        self.token_path = token_path
        self._buffer: list[str] = []
        self._token: str | None = None

    def _get_token(self) -> str | None:
        """Load the API token from file."""
        if self._token is not None:
            return self._token
        if not self.token_path:
            return None

        token_path = Path(self.token_path)
        if token_path.exists():
            self._token = token_path.read_text().strip()
            return self._token

        log.debug("metrics_token_not_found", path=str(token_path))
        return None

    def gauge(self, metric: str, value: float, dimensions: dict[str, Any] | None = None) -> None:
        dims = {"service": "bronze_loader"}
        if dimensions:
            dims.update(dimensions)

        dim_str = ",".join(f"{k}={v}" for k, v in dims.items())
        self._buffer.append(f"{metric},{dim_str} gauge={value}")

    @property
    def buffered(self) -> list[str]:
        return list(self._buffer)

    def record_run(self, summary: RunSummary) -> None:
        """Buffer the run-level and per-table gauges for one run."""
        run_dims = {"batch_id": summary.batch_id}
        self.gauge("bronze.entries.succeeded", summary.succeeded, run_dims)
        self.gauge("bronze.entries.failed", summary.failed, run_dims)
        self.gauge("bronze.rows.loaded", summary.rows_loaded, run_dims)
        self.gauge("bronze.run.duration_seconds", summary.duration.total_seconds(), run_dims)

        for record in summary.records:
            table_dims = {
                "table": f"{record.schema_name}.{record.table_name}",
                "status": record.status.value,
            }
            self.gauge("bronze.table.rows", record.rows_loaded, table_dims)
            self.gauge("bronze.table.duration_seconds", record.duration.total_seconds(), table_dims)

    def flush(self) -> None:
        """Send buffered metrics. Failures are logged, never raised."""
        if not self._buffer:
            return

        token = self._get_token()
        if not token or not self.endpoint:
            log.debug("metrics_flush_skipped", reason="no endpoint or token configured")
            self._buffer.clear()
            return

        try:
            import httpx

            response = httpx.post(
                f"{self.endpoint.rstrip('/')}/api/v2/metrics/ingest",
                headers={
                    "Authorization": f"Api-Token {token}",
                    "Content-Type": "text/plain",
                },
                content="\n".join(self._buffer),
                timeout=10,
            )

            if response.status_code == 202:
                log.info("metrics_flushed", count=len(self._buffer))
            else:
                log.error(
                    "metrics_flush_failed",
                    status=response.status_code,
                    body=response.text[:500],
                )
        except Exception as e:
            log.warning("metrics_flush_error", error=str(e))
        finally:
            self._buffer.clear()
