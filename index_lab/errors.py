"""
Exception hierarchy for Index Lab.

Batch- and shape-local failures are absorbed by the loader and the benchmark
runner; everything that invalidates a whole operation (unreachable storage,
missing prerequisites, a failing schema script) propagates to the caller.
"""

from __future__ import annotations

from typing import Sequence, Tuple


class LabError(Exception):
    """Base class for all errors raised by the harness."""


class ConfigurationError(LabError):
    """A prerequisite is missing or a requested name is unknown."""


class TruncationDefectError(ConfigurationError):
    """
    Storage rejected a value as too long although the encoder already ran.

    This means the declared field limits and the deployed schema disagree, so
    it is never treated as a skippable batch failure.
    """

    def __init__(
        self,
        table: str,
        offending: Sequence[Tuple[str, int, int]],
        message: str = "",
    ) -> None:
        self.table = table
        self.offending = list(offending)
        fields = ", ".join(f"{col} ({length} > {limit})" for col, length, limit in self.offending)
        detail = fields or "no field exceeds the declared limits; schema differs from FIELD_LIMITS"
        super().__init__(f"Truncation rejected by storage for '{table}': {detail}. {message}".strip())


class StorageConnectionError(LabError, ConnectionError):
    """The storage engine cannot be reached."""


class ScriptExecutionError(LabError):
    """A schema or optimization script failed; the script is aborted."""

    def __init__(self, script: str, batch_index: int, message: str) -> None:
        self.script = script
        self.batch_index = batch_index
        super().__init__(f"Script '{script}' failed at batch {batch_index}: {message}")


class BulkLoadError(LabError):
    """A bulk batch failed to commit; none of its rows are assumed written."""

    def __init__(self, table: str, start: int, end: int, message: str) -> None:
        self.table = table
        self.start = start
        self.end = end
        self.reason = message
        super().__init__(
            f"Bulk append into '{table}' failed for records [{start}, {end}) "
            f"({end - start} attempted): {message}"
        )

    @property
    def attempted(self) -> int:
        return self.end - self.start


class QueryExecutionError(LabError):
    """A query could not be executed or its result set could not be read."""


__all__ = [
    "BulkLoadError",
    "ConfigurationError",
    "LabError",
    "QueryExecutionError",
    "ScriptExecutionError",
    "StorageConnectionError",
    "TruncationDefectError",
]
