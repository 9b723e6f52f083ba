"""
Persistence of benchmark summaries.

Every saved run is written to `results_dir` as:
- `<label>.json` (last run of that lesson, used for before/after comparison)
- `latest.json` (last run overall)
- `run-<timestamp>-<label>.json` (timestamped archive)

When a storage is given, timed results are also appended to the
`performance_test_results` table.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from index_lab.benchmark.runner import BenchmarkSummary
from index_lab.domain.models import BenchmarkResult
from index_lab.domain.schema import RESULTS, insert_columns
from index_lab.errors import BulkLoadError
from index_lab.generation.encoding import encode_row
from index_lab.infrastructure.storage import Storage
from index_lab.utils.logging import get_logger

log = get_logger(__name__)


class ResultStore:
    def __init__(self, results_dir: Path | str, storage: Optional[Storage] = None) -> None:
        self.results_dir = Path(results_dir)
        self.storage = storage

    def save(self, label: str, summary: BenchmarkSummary) -> Path:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "label": label,
            "results": [result.model_dump(mode="json") for result in summary.results],
            "slowest": [result.test_name for result in summary.slowest],
        }
        self.results_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        label_path = self.results_dir / f"{label}.json"
        paths = [
            label_path,
            self.results_dir / "latest.json",
            self.results_dir / f"run-{timestamp}-{label}.json",
        ]
        for path in paths:
            with path.open("w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, sort_keys=True)
        log.info("Results persisted", extra={"label": label, "files": [str(p) for p in paths]})

        if self.storage is not None:
            self._insert(summary)
        return label_path

    def _insert(self, summary: BenchmarkSummary) -> None:
        rows = [encode_row(RESULTS, result) for result in summary.results if not result.failed]
        if not rows:
            return
        try:
            written = self.storage.bulk_append(RESULTS, insert_columns(RESULTS), rows)
        except BulkLoadError as exc:
            log.error(
                "Could not record results in storage",
                extra={"table": RESULTS, "rows": len(rows), "error": exc.reason},
            )
            return
        log.info("Results recorded in storage", extra={"table": RESULTS, "rows": written})

    def load(self, label: str) -> Optional[List[BenchmarkResult]]:
        """Results of the last run saved under `label`, or None."""
        path = self.results_dir / f"{label}.json"
        if not path.is_file():
            return None
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
        return [BenchmarkResult.model_validate(item) for item in payload["results"]]


__all__ = ["ResultStore"]
