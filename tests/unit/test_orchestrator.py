from __future__ import annotations

from datetime import datetime, timezone

import pytest
from tenacity import wait_none

from index_lab.benchmark.catalog import CATALOG
from index_lab.benchmark.results import ResultStore
from index_lab.config import PACKAGED_SCRIPTS_DIR, Settings
from index_lab.domain.models import BenchmarkResult
from index_lab.domain.schema import DEPARTMENTS, ORDERS, RESULTS, USERS
from index_lab.errors import ConfigurationError, StorageConnectionError
from index_lab.orchestrator import (
    Comparison,
    Lab,
    available_lessons,
    compare,
    run_course,
    run_lesson,
    shortfall,
    with_connect_retry,
)

MEASURED_AT = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _lab(storage, source, targets=None, **kwargs) -> Lab:
    return Lab(
        storage,
        scripts_dir=PACKAGED_SCRIPTS_DIR,
        targets=targets or {DEPARTMENTS: 4, USERS: 30, ORDERS: 60},
        batch_size=25,
        iterations=1,
        source=source,
        **kwargs,
    )


def test_available_lessons_in_course_order() -> None:
    assert available_lessons() == ["setup", "datagen", "baseline", "index", "advanced", "final"]


@pytest.mark.parametrize(("target", "current", "expected"), [(10, 3, 7), (10, 10, 0), (10, 15, 0), (0, 0, 0)])
def test_shortfall(target, current, expected) -> None:
    assert shortfall(target, current) == expected


def test_unknown_lesson(memory_storage, source) -> None:
    with pytest.raises(ConfigurationError):
        run_lesson(_lab(memory_storage, source), "cleanup")


def test_setup_runs_schema_script(memory_storage, source) -> None:
    outcome = run_lesson(_lab(memory_storage, source), "setup")

    assert outcome.lesson == "setup"
    assert "DROP TABLE IF EXISTS orders" in memory_storage.executed[0]
    assert outcome.counts == {DEPARTMENTS: 0, USERS: 0, ORDERS: 0}


def test_datagen_requests_only_the_shortfall(memory_storage, source) -> None:
    lab = _lab(memory_storage, source, targets={DEPARTMENTS: 8, USERS: 30, ORDERS: 0})
    lab.generator.generate_departments(5)
    memory_storage.append_calls.clear()

    outcome = lab.run_lesson("datagen")

    assert [(r.table, r.requested) for r in outcome.loads] == [(DEPARTMENTS, 3), (USERS, 30)]
    assert outcome.counts == {DEPARTMENTS: 8, USERS: 30, ORDERS: 0}
    assert [size for _, size in memory_storage.append_calls] == [3, 25, 5]


def test_datagen_is_a_no_op_when_targets_are_met(memory_storage, source) -> None:
    lab = _lab(memory_storage, source, targets={DEPARTMENTS: 2, USERS: 0, ORDERS: 0})
    lab.run_lesson("datagen")
    memory_storage.append_calls.clear()

    outcome = lab.run_lesson("datagen")

    assert outcome.loads == []
    assert memory_storage.append_calls == []


def test_index_lesson_runs_script_then_benchmarks(memory_storage, source) -> None:
    outcome = run_lesson(_lab(memory_storage, source), "index")

    assert any("ix_users_email" in batch for batch in memory_storage.executed)
    assert len(outcome.summary.results) == len(CATALOG)
    assert len(outcome.summary.slowest) == 5


def test_benchmark_lesson_by_category(memory_storage, source) -> None:
    outcome = _lab(memory_storage, source).run_lesson("baseline", category="join")
    assert {r.query_type for r in outcome.summary.results} == {"join"}


def test_final_lesson_compares_with_baseline(memory_storage, source) -> None:
    lab = _lab(memory_storage, source)
    lab.run_lesson("baseline")

    outcome = lab.run_lesson("final")

    assert [c.test_name for c in outcome.comparison] == [shape.name for shape in CATALOG]
    assert all(c.baseline_ms is not None for c in outcome.comparison)


def test_final_lesson_reads_baseline_from_result_store(tmp_path, memory_storage, source) -> None:
    _lab(memory_storage, source, result_store=ResultStore(tmp_path)).run_lesson("baseline")
    fresh = _lab(memory_storage, source, result_store=ResultStore(tmp_path))

    outcome = fresh.run_lesson("final")

    assert len(outcome.comparison) == len(CATALOG)
    assert (tmp_path / "final.json").is_file()


def test_final_lesson_without_baseline_has_no_comparison(memory_storage, source) -> None:
    assert _lab(memory_storage, source).run_lesson("final").comparison == []


def test_course_runs_lessons_in_order(memory_storage, source) -> None:
    outcomes = run_course(_lab(memory_storage, source), ["setup", "datagen", "baseline"])

    assert [o.lesson for o in outcomes] == ["setup", "datagen", "baseline"]
    assert memory_storage.row_count(ORDERS) == 60


def test_lab_from_settings_wires_targets(memory_storage, tmp_path) -> None:
    settings = Settings(
        department_count=7,
        user_count=70,
        order_count=700,
        batch_size=50,
        bench_iterations=2,
        results_dir=tmp_path,
    )
    lab = Lab.from_settings(settings, memory_storage)

    assert lab.targets == {DEPARTMENTS: 7, USERS: 70, ORDERS: 700}
    assert lab.loader.batch_size == 50
    assert lab.runner.iterations == 2
    assert lab.result_store.results_dir == tmp_path
    assert lab.result_store.storage is memory_storage


def test_compare_pairs_by_name() -> None:
    def result(name, ms):
        return BenchmarkResult(
            test_name=name, query_type="basic", execution_time_ms=ms, test_date=MEASURED_AT
        )

    pairs = compare([result("a", 100.0), result("b", 8.0)], [result("b", 2.0), result("c", 1.0)])

    assert pairs == [Comparison("b", 8.0, 2.0), Comparison("c", None, 1.0)]
    assert pairs[0].speedup == pytest.approx(4.0)
    assert pairs[1].speedup is None


def test_connect_retry_recovers_from_transient_failures() -> None:
    calls = []

    def connect():
        calls.append(1)
        if len(calls) < 3:
            raise StorageConnectionError("not yet")
        return "connected"

    assert with_connect_retry(connect, attempts=3, wait=wait_none()) == "connected"
    assert len(calls) == 3


def test_connect_retry_gives_up_after_attempts() -> None:
    calls = []

    def connect():
        calls.append(1)
        raise StorageConnectionError("down")

    with pytest.raises(StorageConnectionError):
        with_connect_retry(connect, attempts=2, wait=wait_none())
    assert len(calls) == 2


def test_results_table_untouched_without_store(memory_storage, source) -> None:
    _lab(memory_storage, source).run_lesson("baseline")
    assert memory_storage.tables[RESULTS] == []


def test_lesson_survives_results_table_failure(tmp_path, memory_storage, source) -> None:
    memory_storage.fail_appends = {1}
    lab = _lab(memory_storage, source, result_store=ResultStore(tmp_path, memory_storage))

    outcome = lab.run_lesson("baseline")

    assert len(outcome.summary.results) == len(CATALOG)
    assert (tmp_path / "baseline.json").is_file()
    assert memory_storage.tables[RESULTS] == []
