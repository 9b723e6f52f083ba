"""
Index Lab - a teaching harness for SQL indexing strategies on PostgreSQL.

Runs a fixed lesson sequence against one database:

- Schema creation from packaged SQL scripts
- Referential synthetic data generation through batched bulk appends
- Repeated timing of a catalog of query shapes
- Index and advanced optimization scripts, each followed by a benchmark
- A before/after comparison against the baseline run
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from index_lab.benchmark import BenchmarkRunner, BenchmarkSummary, QueryShape, summarize, trimmed_mean
from index_lab.config import Settings, get_settings
from index_lab.errors import (
    BulkLoadError,
    ConfigurationError,
    LabError,
    QueryExecutionError,
    ScriptExecutionError,
    StorageConnectionError,
    TruncationDefectError,
)
from index_lab.generation import BulkLoader, DataGenerator, LoadReport, RandomSource, truncate
from index_lab.infrastructure import Database, Storage
from index_lab.orchestrator import Lab, available_lessons, run_course, run_lesson
from index_lab.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Errors
    "BulkLoadError",
    "ConfigurationError",
    "LabError",
    "QueryExecutionError",
    "ScriptExecutionError",
    "StorageConnectionError",
    "TruncationDefectError",
    # Storage
    "Database",
    "Storage",
    # Generation
    "BulkLoader",
    "DataGenerator",
    "LoadReport",
    "RandomSource",
    "truncate",
    # Benchmarks
    "BenchmarkRunner",
    "BenchmarkSummary",
    "QueryShape",
    "summarize",
    "trimmed_mean",
    # Orchestration
    "Lab",
    "available_lessons",
    "run_course",
    "run_lesson",
    # Logging
    "configure_logging",
    "get_logger",
]
