"""
Storage boundary for Index Lab.

The generator, the loader and the benchmark runner only talk to storage
through the `Storage` protocol below. `Database` is the PostgreSQL
implementation; tests plug in an in-memory one.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Optional, Protocol, Sequence, runtime_checkable

Row = Mapping[str, Any]


@runtime_checkable
class Storage(Protocol):
    """
    Common interface every storage backend must implement.

    All calls are blocking and issued from a single thread; callers never
    overlap two operations on the same storage.
    """

    def execute_batch(self, sql: str) -> None:
        """
        Execute one batch (possibly several statements) and commit it.

        Raises
        ------
        QueryExecutionError
            If the engine rejects the batch.
        """
        ...

    def bulk_append(self, table: str, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> int:
        """
        Append `rows` to `table` in one set-oriented operation.

        Returns
        -------
        int
            Number of rows committed; always `len(rows)` on success.

        Raises
        ------
        BulkLoadError
            If the batch failed; no row of the batch is committed. The range
            reported is relative to `rows`.
        TruncationDefectError
            If the engine rejected a value as too long.
        """
        ...

    def query(self, sql: str) -> Iterator[Row]:
        """
        Lazily yield result rows as column-name mappings (single pass).
        """
        ...

    def scalar(self, sql: str) -> Optional[Any]:
        """
        Return the first column of the first row, or None for an empty result.
        """
        ...

    def row_count(self, table: str) -> int:
        """Return the number of rows currently in `table`."""
        ...


__all__ = ["Row", "Storage"]
