"""
Query benchmark runner.

Every shape runs `iterations` times back to back on the same storage. A
sample is the wall-clock time from issuing the statement until the last row
has been consumed. Samples are aggregated with a trimmed mean.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from index_lab.benchmark.catalog import CATALOG, QueryShape
from index_lab.domain.models import BenchmarkResult
from index_lab.errors import QueryExecutionError
from index_lab.infrastructure.storage import Storage
from index_lab.utils.logging import get_logger

log = get_logger(__name__)

Clock = Callable[[], float]

SLOWEST_COUNT = 5


def trimmed_mean(samples: Sequence[float]) -> float:
    """
    Mean of `samples` without the single lowest and highest value.

    With two samples or fewer, every sample is averaged.
    """
    if not samples:
        raise ValueError("trimmed_mean() requires at least one sample")
    ordered = sorted(samples)
    if len(ordered) > 2:
        ordered = ordered[1:-1]
    return sum(ordered) / len(ordered)


@dataclass(frozen=True)
class BenchmarkSummary:
    """Per-shape results in run order plus the slowest-shapes callout."""

    results: Tuple[BenchmarkResult, ...]
    slowest: Tuple[BenchmarkResult, ...]

    @property
    def failed(self) -> Tuple[BenchmarkResult, ...]:
        return tuple(result for result in self.results if result.failed)


def summarize(results: Iterable[BenchmarkResult], top: int = SLOWEST_COUNT) -> BenchmarkSummary:
    """
    Build the summary; the slowest list is ordered by descending latency.

    `sorted` is stable, so equal latencies keep their run order. Failed shapes
    have no latency and never appear in the slowest list.
    """
    ordered = tuple(results)
    timed = [result for result in ordered if not result.failed]
    slowest = sorted(timed, key=lambda result: result.execution_time_ms, reverse=True)[:top]
    return BenchmarkSummary(results=ordered, slowest=tuple(slowest))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BenchmarkRunner:
    """
    Time query shapes against a `Storage`.

    Parameters
    ----------
    storage : Storage
        Connection the shapes run on; every iteration reuses it.
    iterations : int
        Samples per shape.
    clock : callable
        Monotonic clock in seconds; `time.perf_counter` by default.
    """

    def __init__(
        self,
        storage: Storage,
        iterations: int = 5,
        clock: Clock = time.perf_counter,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        if iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {iterations}")
        self.storage = storage
        self.iterations = iterations
        self.clock = clock
        self.now = now

    def _sample(self, shape: QueryShape) -> Tuple[float, int]:
        rows = 0
        start = self.clock()
        for _ in self.storage.query(shape.sql):
            rows += 1
        return (self.clock() - start) * 1000.0, rows

    def run_shape(self, shape: QueryShape) -> BenchmarkResult:
        """
        Time one shape. Failures propagate; nothing is retried.
        """
        samples: List[float] = []
        rows = 0
        for _ in range(self.iterations):
            elapsed_ms, rows = self._sample(shape)
            samples.append(elapsed_ms)

        latency = trimmed_mean(samples)
        log.info(
            f"{shape.name}: {latency:.2f} ms",
            extra={"shape": shape.name, "category": shape.category, "latency_ms": latency, "rows": rows},
        )
        return BenchmarkResult(
            test_name=shape.name,
            query_type=shape.category,
            execution_time_ms=latency,
            records_affected=rows,
            test_date=self.now(),
            additional_info=(
                f"min={min(samples):.2f}ms max={max(samples):.2f}ms iterations={self.iterations}"
            ),
        )

    def run(self, shapes: Optional[Iterable[QueryShape]] = None) -> BenchmarkSummary:
        """
        Run every shape in order.

        A shape that fails is recorded as a failed result and the run moves on
        to the next shape. `StorageConnectionError` aborts the whole run.
        """
        selected = list(CATALOG if shapes is None else shapes)
        log.info("Benchmark started", extra={"shapes": len(selected), "iterations": self.iterations})

        results: List[BenchmarkResult] = []
        for shape in selected:
            try:
                results.append(self.run_shape(shape))
            except QueryExecutionError as exc:
                log.error(
                    f"{shape.name} failed: {exc}",
                    extra={"shape": shape.name, "category": shape.category},
                )
                results.append(
                    BenchmarkResult(
                        test_name=shape.name,
                        query_type=shape.category,
                        test_date=self.now(),
                        additional_info="failed",
                        error=str(exc),
                    )
                )

        summary = summarize(results)
        log.info(
            "Benchmark completed",
            extra={"shapes": len(results), "failed": len(summary.failed)},
        )
        return summary


__all__ = ["BenchmarkRunner", "BenchmarkSummary", "Clock", "SLOWEST_COUNT", "summarize", "trimmed_mean"]
