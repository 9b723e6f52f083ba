"""Synthetic data: field encoding, record builders, bulk loading."""

from index_lab.generation.builders import (
    RandomSource,
    build_department,
    build_order,
    build_user,
)
from index_lab.generation.encoding import encode_row, overlong_fields, truncate
from index_lab.generation.generator import DataGenerator
from index_lab.generation.loader import BulkLoader, FailedBatch, LoadReport

__all__ = [
    "BulkLoader",
    "DataGenerator",
    "FailedBatch",
    "LoadReport",
    "RandomSource",
    "build_department",
    "build_order",
    "build_user",
    "encode_row",
    "overlong_fields",
    "truncate",
]
