from __future__ import annotations

import io
from datetime import datetime, timezone

from rich.console import Console

from index_lab.benchmark.runner import summarize
from index_lab.domain.models import BenchmarkResult
from index_lab.generation.loader import FailedBatch, LoadReport
from index_lab.inspection import FieldUsage
from index_lab.orchestrator import Comparison, LessonOutcome
from index_lab.reporter import (
    print_benchmark,
    print_comparison,
    print_field_usage,
    print_load_reports,
    print_outcome,
)

MEASURED_AT = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None)


def _output(console: Console) -> str:
    return console.file.getvalue()


def _summary():
    return summarize(
        [
            BenchmarkResult(test_name="Keyset paging", query_type="paging", execution_time_ms=1.25,
                            records_affected=100, test_date=MEASURED_AT),
            BenchmarkResult(test_name="Offset paging", query_type="paging", test_date=MEASURED_AT,
                            error="statement timeout"),
        ]
    )


def test_benchmark_table_lists_results_and_failures() -> None:
    console = _console()
    print_benchmark(_summary(), console=console)
    out = _output(console)
    assert "Keyset paging" in out
    assert "FAILED" in out
    assert "statement timeout" in out
    assert "Slowest 1 Queries" in out


def test_comparison_table_shows_speedup() -> None:
    console = _console()
    pairs = [Comparison("Salary range", 80.0, 20.0), Comparison("New shape", None, 3.0)]
    print_comparison(pairs, console=console)
    out = _output(console)
    assert "4.0x" in out
    assert "N/A" in out


def test_load_report_table() -> None:
    console = _console()
    report = LoadReport(table="users", requested=30, written=20, batches=3,
                        failed=[FailedBatch(10, 20, "boom")], duration_seconds=2.0)
    print_load_reports([report], console=console)
    out = _output(console)
    assert "users" in out
    assert "10.00" in out


def test_empty_load_reports() -> None:
    console = _console()
    print_load_reports([], console=console)
    assert "Nothing generated" in _output(console)


def test_field_usage_table() -> None:
    console = _console()
    print_field_usage([FieldUsage("users", "email", 250, 255)], console=console)
    assert "98%" in _output(console)


def test_outcome_prints_lesson_sections() -> None:
    console = _console()
    print_outcome(LessonOutcome("final", counts={"users": 3}, summary=_summary()), console=console)
    out = _output(console)
    assert "Lesson: final" in out
    assert "Row Counts" in out
    assert "Query Benchmark (final)" in out
