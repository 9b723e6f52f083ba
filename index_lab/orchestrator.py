"""
Lesson orchestrator for Index Lab.

Runs the fixed lesson sequence against one storage:

    setup -> datagen -> baseline -> index -> advanced -> final

Usage (example from CLI):
    from index_lab.orchestrator import Lab, open_database, run_course

    with open_database(settings, create=True) as db:
        outcomes = run_course(Lab.from_settings(settings, db))

Benchmark lessons persist their results under `results/` through
`ResultStore`; the `final` lesson is compared against `baseline`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from index_lab.benchmark.catalog import QueryShape, shapes_for
from index_lab.benchmark.results import ResultStore
from index_lab.benchmark.runner import BenchmarkRunner, BenchmarkSummary
from index_lab.config import Settings
from index_lab.domain.models import BenchmarkResult
from index_lab.domain.schema import DEPARTMENTS, ENTITY_TABLES, ORDERS, USERS
from index_lab.errors import ConfigurationError, StorageConnectionError
from index_lab.generation.builders import RandomSource
from index_lab.generation.generator import DataGenerator
from index_lab.generation.loader import BulkLoader, FailurePolicy, LoadReport
from index_lab.infrastructure.database import Database
from index_lab.infrastructure.db_factory import create_database_if_missing
from index_lab.infrastructure.scripts import run_script
from index_lab.infrastructure.storage import Storage
from index_lab.utils.logging import get_logger

log = get_logger(__name__)

LESSONS = ("setup", "datagen", "baseline", "index", "advanced", "final")
LESSON_SCRIPTS = {
    "setup": "01-create-tables.sql",
    "index": "02-create-indexes.sql",
    "advanced": "03-advanced-optimizations.sql",
}
BASELINE = "baseline"

DEFAULT_WAIT = wait_exponential(multiplier=1, min=1, max=10)


@dataclass(frozen=True)
class Comparison:
    test_name: str
    baseline_ms: Optional[float]
    current_ms: Optional[float]

    @property
    def speedup(self) -> Optional[float]:
        if self.baseline_ms is None or not self.current_ms:
            return None
        return self.baseline_ms / self.current_ms


@dataclass
class LessonOutcome:
    lesson: str
    counts: Dict[str, int] = field(default_factory=dict)
    loads: List[LoadReport] = field(default_factory=list)
    summary: Optional[BenchmarkSummary] = None
    comparison: List[Comparison] = field(default_factory=list)


def available_lessons() -> List[str]:
    """Lesson names in course order."""
    return list(LESSONS)


def shortfall(target: int, current: int) -> int:
    return max(0, target - current)


def compare(baseline: Iterable[BenchmarkResult], current: Iterable[BenchmarkResult]) -> List[Comparison]:
    """Pair results by shape name, in the order of `current`."""
    before = {result.test_name: result.execution_time_ms for result in baseline}
    return [
        Comparison(result.test_name, before.get(result.test_name), result.execution_time_ms)
        for result in current
    ]


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    log.warning(
        f"Storage not reachable (attempt {state.attempt_number}), retrying",
        extra={"attempt": state.attempt_number, "error": str(exc)},
    )


def with_connect_retry(func, attempts: int = 3, wait: wait_base = DEFAULT_WAIT):
    """
    Call `func()` until it stops raising `StorageConnectionError`.

    The last error is re-raised once `attempts` calls have failed.
    """
    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait,
        retry=retry_if_exception_type(StorageConnectionError),
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(func)


def open_database(settings: Settings, create: bool = False, wait: wait_base = DEFAULT_WAIT) -> Database:
    """
    Connect to the lab database, optionally creating it first.
    """
    if create:
        with_connect_retry(lambda: create_database_if_missing(settings), settings.connect_attempts, wait)
    database = Database.from_settings(settings)
    return with_connect_retry(database.connect, settings.connect_attempts, wait)


class Lab:
    """
    Lesson runner bound to a single storage.

    Parameters
    ----------
    storage : Storage
        Connected storage every lesson runs on.
    scripts_dir : Path
        Directory holding the numbered SQL scripts.
    targets : dict
        Desired row count per entity table.
    result_store : ResultStore, optional
        Where benchmark lessons persist results; nothing is saved when None.
    """

    def __init__(
        self,
        storage: Storage,
        scripts_dir: Path,
        targets: Dict[str, int],
        batch_size: int = 10_000,
        progress_interval: int = 100_000,
        failure_policy: FailurePolicy = "skip",
        iterations: int = 5,
        result_store: Optional[ResultStore] = None,
        source: Optional[RandomSource] = None,
    ) -> None:
        self.storage = storage
        self.scripts_dir = Path(scripts_dir)
        self.targets = {table: targets.get(table, 0) for table in ENTITY_TABLES}
        self.loader = BulkLoader(storage, batch_size, failure_policy, progress_interval)
        self.generator = DataGenerator(storage, self.loader, source)
        self.runner = BenchmarkRunner(storage, iterations=iterations)
        self.result_store = result_store
        self._summaries: Dict[str, BenchmarkSummary] = {}

    @classmethod
    def from_settings(cls, settings: Settings, storage: Storage, persist: bool = True) -> "Lab":
        store = ResultStore(settings.results_dir, storage) if persist else None
        return cls(
            storage,
            scripts_dir=settings.scripts_dir,
            targets={
                DEPARTMENTS: settings.department_count,
                USERS: settings.user_count,
                ORDERS: settings.order_count,
            },
            batch_size=settings.batch_size,
            progress_interval=settings.progress_interval,
            failure_policy=settings.batch_failure_policy,
            iterations=settings.bench_iterations,
            result_store=store,
        )

    def row_counts(self) -> Dict[str, int]:
        return {table: self.storage.row_count(table) for table in ENTITY_TABLES}

    def setup(self) -> LessonOutcome:
        run_script(self.storage, LESSON_SCRIPTS["setup"], self.scripts_dir)
        return LessonOutcome("setup", counts=self.row_counts())

    def datagen(self) -> LessonOutcome:
        """
        Generate only the rows missing from each table, in referential order.
        """
        outcome = LessonOutcome("datagen")
        current = self.row_counts()
        generators = {
            DEPARTMENTS: self.generator.generate_departments,
            USERS: self.generator.generate_users,
            ORDERS: self.generator.generate_orders,
        }
        for table in ENTITY_TABLES:
            missing = shortfall(self.targets[table], current[table])
            if not missing:
                log.info(
                    f"{table} already has {current[table]:,} rows, skipping",
                    extra={"table": table, "rows": current[table]},
                )
                continue
            outcome.loads.append(generators[table](missing))

        outcome.counts = self.row_counts()
        for table in ENTITY_TABLES:
            if outcome.counts[table] < self.targets[table]:
                log.warning(
                    f"{table} is short of its target",
                    extra={"table": table, "rows": outcome.counts[table], "target": self.targets[table]},
                )
        return outcome

    def benchmark(self, label: str, shapes: Optional[Iterable[QueryShape]] = None) -> LessonOutcome:
        summary = self.runner.run(shapes)
        self._summaries[label] = summary
        if self.result_store is not None:
            self.result_store.save(label, summary)

        outcome = LessonOutcome(label, summary=summary)
        if label != BASELINE:
            baseline = self._baseline()
            if baseline is None:
                log.warning("No baseline results to compare against", extra={"lesson": label})
            else:
                outcome.comparison = compare(baseline, summary.results)
        return outcome

    def _baseline(self) -> Optional[List[BenchmarkResult]]:
        if BASELINE in self._summaries:
            return list(self._summaries[BASELINE].results)
        if self.result_store is not None:
            return self.result_store.load(BASELINE)
        return None

    def run_lesson(self, name: str, category: Optional[str] = None) -> LessonOutcome:
        if name not in LESSONS:
            raise ConfigurationError(f"Unknown lesson '{name}'. Available: {', '.join(LESSONS)}")
        log.info(f"[LESSON START] {name}", extra={"lesson": name})
        if name == "setup":
            outcome = self.setup()
        elif name == "datagen":
            outcome = self.datagen()
        else:
            if name in LESSON_SCRIPTS:
                run_script(self.storage, LESSON_SCRIPTS[name], self.scripts_dir)
            outcome = self.benchmark(name, shapes_for(category))
        log.info(f"[LESSON COMPLETE] {name}", extra={"lesson": name})
        return outcome


def run_lesson(lab: Lab, name: str, category: Optional[str] = None) -> LessonOutcome:
    return lab.run_lesson(name, category)


def run_course(lab: Lab, lessons: Optional[Iterable[str]] = None) -> List[LessonOutcome]:
    """
    Run lessons in course order; any lesson error stops the course.
    """
    names = list(lessons) if lessons is not None else available_lessons()
    outcomes = [lab.run_lesson(name) for name in names]
    log.info(
        f"[COURSE COMPLETE] {len(outcomes)} lesson(s) executed",
        extra={"lessons": names},
    )
    return outcomes


__all__ = [
    "Comparison",
    "LESSONS",
    "Lab",
    "LessonOutcome",
    "available_lessons",
    "compare",
    "open_database",
    "run_course",
    "run_lesson",
    "shortfall",
    "with_connect_retry",
]
