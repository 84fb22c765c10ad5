from dataclasses import FrozenInstanceError

import pytest

from wingetctl.core.winget_types import (
    BatchSummary,
    OperationResult,
    PackageRecord,
    ParseResult,
    ParseStatus,
)


def test_package_record_optional_fields_default_to_none() -> None:
    record = PackageRecord(name="Foo App", id="Foo.App")

    assert record.installed_version is None
    assert record.available_version is None
    assert record.source is None


def test_package_record_is_frozen() -> None:
    record = PackageRecord(name="Foo App", id="Foo.App")

    with pytest.raises(FrozenInstanceError):
        record.id = "changed"  # type: ignore[misc]


def test_parse_result_behaves_like_its_records() -> None:
    records = (PackageRecord(name="A", id="A.A"), PackageRecord(name="B", id="B.B"))
    result = ParseResult(ParseStatus.ROWS, records)

    assert len(result) == 2
    assert list(result) == list(records)
    assert not result.failed


def test_parse_result_failure_has_no_records() -> None:
    result = ParseResult(ParseStatus.PARSE_FAILURE)

    assert result.failed
    assert list(result) == []


def test_batch_summary_counts_successes_and_failures() -> None:
    summary = BatchSummary()
    summary.add(OperationResult("A", "upgrade", True))
    summary.add(OperationResult("B", "upgrade", False))
    summary.add(OperationResult("C", "upgrade", True))

    assert summary.success_count == 2
    assert summary.failure_count == 1
    assert not summary.succeeded
    assert [r.target_id for r in summary.results] == ["A", "B", "C"]


def test_empty_batch_summary_is_successful() -> None:
    assert BatchSummary().succeeded


def test_batch_summary_with_unreadable_listing_is_not_successful() -> None:
    assert not BatchSummary(listing_failed=True).succeeded
