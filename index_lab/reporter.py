from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from index_lab.benchmark.runner import BenchmarkSummary
from index_lab.generation.loader import LoadReport
from index_lab.inspection import FieldUsage
from index_lab.orchestrator import Comparison, LessonOutcome


def _ms(value: Optional[float]) -> str:
    return "FAILED" if value is None else f"{value:,.2f}"


def print_benchmark(
    summary: BenchmarkSummary, title: str = "Query Benchmark", console: Optional[Console] = None
) -> None:
    """
    Render every shape in run order, then the slowest-shapes callout.
    """
    console = console or Console()

    if not summary.results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    table = Table(title=title, box=box.ROUNDED, caption="In run order")
    table.add_column("Query", style="cyan", no_wrap=True)
    table.add_column("Category", style="blue")
    table.add_column("Time (ms)", justify="right", style="bold green")
    table.add_column("Rows", justify="right", style="magenta")
    table.add_column("Details", style="dim")

    for result in summary.results:
        details = result.error if result.failed else result.additional_info
        table.add_row(
            result.test_name,
            result.query_type,
            _ms(result.execution_time_ms),
            f"{result.records_affected:,}",
            details or "",
        )
    console.print(table)
    print_slowest(summary, console=console)


def print_slowest(summary: BenchmarkSummary, console: Optional[Console] = None) -> None:
    console = console or Console()
    if not summary.slowest:
        return
    table = Table(title=f"Slowest {len(summary.slowest)} Queries", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Query", style="cyan", no_wrap=True)
    table.add_column("Time (ms)", justify="right", style="bold red")
    for rank, result in enumerate(summary.slowest, start=1):
        table.add_row(str(rank), result.test_name, _ms(result.execution_time_ms))
    console.print(table)


def print_comparison(
    comparisons: Sequence[Comparison], title: str = "Before / After", console: Optional[Console] = None
) -> None:
    console = console or Console()
    if not comparisons:
        return
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Query", style="cyan", no_wrap=True)
    table.add_column("Baseline (ms)", justify="right", style="yellow")
    table.add_column("Current (ms)", justify="right", style="green")
    table.add_column("Speed-up", justify="right", style="bold green")
    for item in comparisons:
        speedup = item.speedup
        table.add_row(
            item.test_name,
            "N/A" if item.baseline_ms is None else f"{item.baseline_ms:,.2f}",
            _ms(item.current_ms),
            "N/A" if speedup is None else f"{speedup:.1f}x",
        )
    console.print(table)


def print_load_reports(reports: Iterable[LoadReport], console: Optional[Console] = None) -> None:
    console = console or Console()
    rows: List[LoadReport] = list(reports)
    if not rows:
        console.print("[yellow]Nothing generated: every table already meets its target.[/yellow]")
        return
    table = Table(title="Data Generation", box=box.ROUNDED)
    table.add_column("Table", style="cyan")
    table.add_column("Requested", justify="right")
    table.add_column("Written", justify="right", style="bold green")
    table.add_column("Skipped", justify="right", style="red")
    table.add_column("Batches", justify="right")
    table.add_column("Duration (s)", justify="right")
    table.add_column("Rows/s", justify="right")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")
    for report in rows:
        mem_mb = (report.peak_rss_bytes or 0) / (1024 * 1024)
        table.add_row(
            report.table,
            f"{report.requested:,}",
            f"{report.written:,}",
            f"{report.skipped:,}",
            str(report.batches),
            f"{report.duration_seconds:.1f}",
            f"{report.rows_per_sec:,.2f}",
            f"{mem_mb:.2f}",
        )
    console.print(table)


def print_counts(counts: Dict[str, int], console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title="Row Counts", box=box.SIMPLE)
    table.add_column("Table", style="cyan")
    table.add_column("Rows", justify="right", style="magenta")
    for name, count in counts.items():
        table.add_row(name, f"{count:,}")
    console.print(table)


def print_field_usage(usage: Iterable[FieldUsage], console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(
        title="Field Length Usage",
        box=box.ROUNDED,
        caption="Highlighted rows are close to their limit",
    )
    table.add_column("Table", style="cyan")
    table.add_column("Column")
    table.add_column("Longest", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Usage", justify="right")
    for item in usage:
        table.add_row(
            item.table,
            item.column,
            f"{item.max_length:,}",
            f"{item.limit:,}",
            f"{item.ratio:.0%}",
            style="bold red" if item.at_risk else None,
        )
    console.print(table)


def print_outcome(outcome: LessonOutcome, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.rule(f"Lesson: {outcome.lesson}")
    if outcome.loads:
        print_load_reports(outcome.loads, console=console)
    if outcome.counts:
        print_counts(outcome.counts, console=console)
    if outcome.summary is not None:
        print_benchmark(outcome.summary, title=f"Query Benchmark ({outcome.lesson})", console=console)
    if outcome.comparison:
        print_comparison(outcome.comparison, title=f"Baseline vs {outcome.lesson}", console=console)
