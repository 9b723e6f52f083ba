"""
Batched bulk loader.

Turns "write N records of kind K" into ceil(N / batch_size) sequential bulk
appends. A batch is built, encoded and appended before the next one is
generated, so memory stays bounded by a single batch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel

from index_lab.domain.schema import insert_columns
from index_lab.errors import BulkLoadError, TruncationDefectError
from index_lab.generation.encoding import encode_row
from index_lab.infrastructure.storage import Storage
from index_lab.utils.logging import get_logger
from index_lab.utils.profiler import profile_block

log = get_logger(__name__)

FailurePolicy = Literal["skip", "abort"]
BatchFactory = Callable[[int], Sequence[BaseModel]]


@dataclass(frozen=True)
class FailedBatch:
    start: int
    end: int
    reason: str

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass
class LoadReport:
    """Outcome of one `BulkLoader.load` call."""

    table: str
    requested: int
    written: int = 0
    batches: int = 0
    failed: List[FailedBatch] = field(default_factory=list)
    duration_seconds: float = 0.0
    peak_rss_bytes: Optional[int] = None

    @property
    def skipped(self) -> int:
        return sum(batch.size for batch in self.failed)

    @property
    def rows_per_sec(self) -> float:
        if not self.duration_seconds:
            return 0.0
        return round(self.written / self.duration_seconds, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "requested": self.requested,
            "written": self.written,
            "batches": self.batches,
            "skipped": self.skipped,
            "failed_batches": [
                {"start": b.start, "end": b.end, "reason": b.reason} for b in self.failed
            ],
            "duration_seconds": round(self.duration_seconds, 2),
            "rows_per_sec": self.rows_per_sec,
            "peak_rss_bytes": self.peak_rss_bytes,
        }


class BulkLoader:
    """
    Sequential batched writer over a `Storage`.

    Parameters
    ----------
    storage : Storage
        Target of every bulk append.
    batch_size : int
        Records per bulk append (the last batch may be smaller).
    failure_policy : {"skip", "abort"}
        "skip" logs a failed batch and continues with the next one, so the
        final count may fall short of the target by whole batches. "abort"
        re-raises the first `BulkLoadError`.
    progress_interval : int
        A progress line is logged each time the written total crosses a
        multiple of this value.
    """

    def __init__(
        self,
        storage: Storage,
        batch_size: int = 10_000,
        failure_policy: FailurePolicy = "skip",
        progress_interval: int = 100_000,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if progress_interval < 1:
            raise ValueError(f"progress_interval must be >= 1, got {progress_interval}")
        if failure_policy not in ("skip", "abort"):
            raise ValueError(f"Unknown failure policy '{failure_policy}'")
        self.storage = storage
        self.batch_size = batch_size
        self.failure_policy = failure_policy
        self.progress_interval = progress_interval

    def batch_count(self, count: int) -> int:
        return -(-count // self.batch_size)

    def load(self, table: str, count: int, make_batch: BatchFactory) -> LoadReport:
        """
        Write `count` records of `table`, built `n` at a time by `make_batch(n)`.

        Raises
        ------
        BulkLoadError
            Only with the "abort" policy, carrying the absolute batch range.
        TruncationDefectError
            Always; a length rejection after encoding is a schema mismatch.
        StorageConnectionError
            Always; storage is unreachable.
        """
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")

        columns = insert_columns(table)
        report = LoadReport(table=table, requested=count)
        log.info(
            f"Loading {count:,} {table}",
            extra={"table": table, "requested": count, "batches": self.batch_count(count)},
        )

        with profile_block(f"load-{table}") as stats:
            for start in range(0, count, self.batch_size):
                end = min(start + self.batch_size, count)
                rows = [encode_row(table, record) for record in make_batch(end - start)]
                report.batches += 1
                try:
                    written = self.storage.bulk_append(table, columns, rows)
                except TruncationDefectError as exc:
                    for column, length, limit in exc.offending:
                        log.error(
                            "Value rejected as too long after encoding",
                            extra={"table": table, "column": column, "length": length, "limit": limit},
                        )
                    raise
                except BulkLoadError as exc:
                    failure = BulkLoadError(table, start, end, exc.reason)
                    if self.failure_policy == "abort":
                        raise failure from exc
                    log.warning(
                        f"Skipping failed batch: {failure}",
                        extra={"table": table, "start": start, "end": end, "attempted": end - start},
                    )
                    report.failed.append(FailedBatch(start, end, exc.reason))
                    continue

                before = report.written
                report.written += written
                if report.written // self.progress_interval > before // self.progress_interval:
                    log.info(
                        f"Inserted {report.written:,} {table}...",
                        extra={"table": table, "written": report.written, "requested": count},
                    )

        report.duration_seconds = stats.duration_seconds
        report.peak_rss_bytes = stats.peak_rss_bytes
        log.info(
            f"Finished {table}: {report.written:,}/{count:,} written",
            extra=report.to_dict(),
        )
        return report


__all__ = ["BulkLoader", "FailedBatch", "FailurePolicy", "LoadReport"]
