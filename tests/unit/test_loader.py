from __future__ import annotations

import logging

import pytest

from index_lab.domain.schema import DEPARTMENTS
from index_lab.errors import BulkLoadError, TruncationDefectError
from index_lab.generation.builders import build_department
from index_lab.generation.loader import BulkLoader

LOADER_LOGGER = "index_lab.generation.loader"


def _departments(source):
    return lambda n: [build_department(source) for _ in range(n)]


@pytest.mark.parametrize(
    ("count", "batch_size", "expected_sizes"),
    [
        (25, 10, [10, 10, 5]),
        (20, 10, [10, 10]),
        (3, 10, [3]),
        (0, 10, []),
        (1, 1, [1]),
    ],
)
def test_load_issues_ceil_batches(memory_storage, source, count, batch_size, expected_sizes) -> None:
    loader = BulkLoader(memory_storage, batch_size=batch_size)
    report = loader.load(DEPARTMENTS, count, _departments(source))

    assert [size for _, size in memory_storage.append_calls] == expected_sizes
    assert report.batches == len(expected_sizes)
    assert report.written == count
    assert memory_storage.row_count(DEPARTMENTS) == count
    assert report.failed == []


def test_skip_policy_continues_after_failed_batch(memory_storage, source) -> None:
    memory_storage.fail_appends = {2}
    loader = BulkLoader(memory_storage, batch_size=10, failure_policy="skip")

    report = loader.load(DEPARTMENTS, 25, _departments(source))

    assert report.batches == 3
    assert report.written == 15
    assert report.skipped == 10
    assert [(b.start, b.end) for b in report.failed] == [(10, 20)]
    assert report.failed[0].reason == "injected failure"
    assert memory_storage.row_count(DEPARTMENTS) == 15


def test_skip_policy_logs_failed_range(memory_storage, source, caplog) -> None:
    caplog.set_level(logging.WARNING, logger=LOADER_LOGGER)
    memory_storage.fail_appends = {1}
    BulkLoader(memory_storage, batch_size=4).load(DEPARTMENTS, 6, _departments(source))

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert warnings[0].start == 0
    assert warnings[0].end == 4
    assert "injected failure" in warnings[0].getMessage()


def test_abort_policy_raises_with_absolute_range(memory_storage, source) -> None:
    memory_storage.fail_appends = {2}
    loader = BulkLoader(memory_storage, batch_size=10, failure_policy="abort")

    with pytest.raises(BulkLoadError) as excinfo:
        loader.load(DEPARTMENTS, 25, _departments(source))

    assert (excinfo.value.start, excinfo.value.end) == (10, 20)
    assert excinfo.value.attempted == 10
    assert memory_storage.row_count(DEPARTMENTS) == 10
    assert len(memory_storage.append_calls) == 2


def test_truncation_defect_propagates_under_skip_policy(memory_storage, source) -> None:
    memory_storage.limits[DEPARTMENTS]["name"] = 3
    loader = BulkLoader(memory_storage, batch_size=5, failure_policy="skip")

    with pytest.raises(TruncationDefectError) as excinfo:
        loader.load(DEPARTMENTS, 12, _departments(source))

    assert excinfo.value.offending[0][0] == "name"
    assert len(memory_storage.append_calls) == 1
    assert memory_storage.row_count(DEPARTMENTS) == 0


def test_progress_logged_when_crossing_interval(memory_storage, source, caplog) -> None:
    caplog.set_level(logging.INFO, logger=LOADER_LOGGER)
    loader = BulkLoader(memory_storage, batch_size=15, progress_interval=10)

    loader.load(DEPARTMENTS, 45, _departments(source))

    progress = [r.written for r in caplog.records if r.getMessage().startswith("Inserted")]
    assert progress == [15, 30, 45]


def test_report_carries_profile_figures(memory_storage, source) -> None:
    report = BulkLoader(memory_storage, batch_size=50).load(DEPARTMENTS, 100, _departments(source))

    assert report.duration_seconds >= 0
    assert report.to_dict()["written"] == 100
    assert report.to_dict()["failed_batches"] == []


@pytest.mark.parametrize(
    "kwargs",
    [{"batch_size": 0}, {"progress_interval": 0}, {"failure_policy": "retry"}],
)
def test_loader_rejects_invalid_settings(memory_storage, kwargs) -> None:
    with pytest.raises(ValueError):
        BulkLoader(memory_storage, **kwargs)


def test_load_rejects_negative_count(memory_storage, source) -> None:
    with pytest.raises(ValueError):
        BulkLoader(memory_storage).load(DEPARTMENTS, -1, _departments(source))


def test_finish_log_carries_report(memory_storage, source, caplog) -> None:
    caplog.set_level(logging.INFO, logger=LOADER_LOGGER)
    memory_storage.fail_appends = {2}
    loader = BulkLoader(memory_storage, batch_size=10, failure_policy="skip")

    loader.load(DEPARTMENTS, 30, _departments(source))

    (finished,) = [r for r in caplog.records if r.getMessage().startswith("Finished")]
    assert finished.written == 20
    assert finished.skipped == 10
    assert finished.failed_batches == [{"start": 10, "end": 20, "reason": "injected failure"}]
