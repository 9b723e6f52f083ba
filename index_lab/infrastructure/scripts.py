"""
Schema and optimization script runner.

Scripts are plain SQL files split into batches by lines that contain only
`GO`. Batches run in order; the first failing batch aborts the script.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from index_lab.errors import ConfigurationError, LabError, ScriptExecutionError, StorageConnectionError
from index_lab.infrastructure.storage import Storage
from index_lab.utils.logging import get_logger

log = get_logger(__name__)

_BATCH_SEPARATOR = re.compile(r"^\s*GO\s*$", re.IGNORECASE | re.MULTILINE)


def split_batches(script: str) -> List[str]:
    """Split a script on `GO` separator lines, dropping empty batches."""
    return [batch.strip() for batch in _BATCH_SEPARATOR.split(script) if batch.strip()]


def load_script(name: str, scripts_dir: Path) -> str:
    path = Path(scripts_dir) / name
    if not path.is_file():
        raise ConfigurationError(f"Script '{name}' not found in {scripts_dir}")
    return path.read_text(encoding="utf-8")


def run_script(storage: Storage, name: str, scripts_dir: Path) -> int:
    """
    Execute every batch of script `name` and return the number of batches run.

    Raises
    ------
    ScriptExecutionError
        On the first failing batch; later batches are not attempted.
    StorageConnectionError
        If storage becomes unreachable.
    """
    batches = split_batches(load_script(name, scripts_dir))
    log.info("Running script", extra={"script": name, "batches": len(batches)})
    for index, batch in enumerate(batches, start=1):
        try:
            storage.execute_batch(batch)
        except StorageConnectionError:
            raise
        except LabError as exc:
            log.error(
                "Script batch failed",
                extra={"script": name, "batch": index, "error": str(exc)},
            )
            raise ScriptExecutionError(name, index, str(exc)) from exc
    log.info("Script completed", extra={"script": name, "batches": len(batches)})
    return len(batches)


__all__ = ["load_script", "run_script", "split_batches"]
