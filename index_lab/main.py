from __future__ import annotations

import sys
from typing import Optional

import click
import typer

from index_lab.benchmark.catalog import categories, shapes_for
from index_lab.config import get_settings
from index_lab.errors import LabError
from index_lab.inspection import field_length_usage
from index_lab.orchestrator import Lab, available_lessons, open_database, run_course, run_lesson
from index_lab.reporter import print_counts, print_field_usage, print_load_reports, print_outcome
from index_lab.utils.logging import configure_logging

app = typer.Typer(help="Index Lab: SQL indexing lessons and query benchmarks.")


def _configure() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"departments={settings.department_count} users={settings.user_count} "
        f"orders={settings.order_count} batch={settings.batch_size} "
        f"iterations={settings.bench_iterations} policy={settings.batch_failure_policy}"
    )
    typer.echo("Lessons: " + ", ".join(available_lessons()))
    typer.echo("Query categories: " + ", ".join(categories()))


@app.command()
def setup() -> None:
    """
    Create the database if missing and build the tables.
    """
    _configure()
    settings = get_settings()
    with open_database(settings, create=True) as db:
        print_outcome(run_lesson(Lab.from_settings(settings, db), "setup"))


@app.command()
def generate(
    departments: Optional[int] = typer.Option(None, "--departments", min=0, help="Target department count."),
    users: Optional[int] = typer.Option(None, "--users", min=0, help="Target user count."),
    orders: Optional[int] = typer.Option(None, "--orders", min=0, help="Target order count."),
) -> None:
    """
    Generate the rows each table is missing to reach its target.
    """
    _configure()
    overrides = {
        "department_count": departments,
        "user_count": users,
        "order_count": orders,
    }
    settings = get_settings().model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )
    with open_database(settings) as db:
        outcome = run_lesson(Lab.from_settings(settings, db), "datagen")
    print_load_reports(outcome.loads)
    print_counts(outcome.counts)


@app.command()
def bench(
    category: str = typer.Option("all", "--category", "-c", help="Query category to run, or 'all'."),
    iterations: Optional[int] = typer.Option(None, "--iterations", "-i", min=1, help="Samples per query."),
    label: str = typer.Option("adhoc", "--label", help="Name the results are saved under."),
) -> None:
    """
    Benchmark the query catalog (or one category) against the current schema.
    """
    _configure()
    settings = get_settings()
    if iterations is not None:
        settings = settings.model_copy(update={"bench_iterations": iterations})
    shapes = shapes_for(category)
    with open_database(settings) as db:
        print_outcome(Lab.from_settings(settings, db).benchmark(label, shapes))


@app.command()
def lesson(name: str = typer.Argument(..., help="Lesson to run.")) -> None:
    """
    Run a single lesson by name.
    """
    _configure()
    settings = get_settings()
    with open_database(settings, create=name == "setup") as db:
        print_outcome(run_lesson(Lab.from_settings(settings, db), name))


@app.command()
def course() -> None:
    """
    Run every lesson in order.
    """
    _configure()
    settings = get_settings()
    with open_database(settings, create=True) as db:
        for outcome in run_course(Lab.from_settings(settings, db)):
            print_outcome(outcome)


@app.command()
def inspect() -> None:
    """
    Show how close stored values come to their column limits.
    """
    _configure()
    settings = get_settings()
    with open_database(settings) as db:
        print_field_usage(field_length_usage(db))


def main() -> None:
    try:
        app(standalone_mode=False)
    except (KeyboardInterrupt, typer.Abort):
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
    except click.ClickException as exc:
        exc.show()
        sys.exit(exc.exit_code)
    except LabError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
