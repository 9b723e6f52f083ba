"""Query shapes, the benchmark runner and result persistence."""

from index_lab.benchmark.catalog import CATALOG, QueryShape, categories, shapes_for
from index_lab.benchmark.results import ResultStore
from index_lab.benchmark.runner import BenchmarkRunner, BenchmarkSummary, summarize, trimmed_mean

__all__ = [
    "BenchmarkRunner",
    "BenchmarkSummary",
    "CATALOG",
    "QueryShape",
    "ResultStore",
    "categories",
    "shapes_for",
    "summarize",
    "trimmed_mean",
]
