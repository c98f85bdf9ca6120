"""
Unit tests for the pydantic data models.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from wage_pipeline.core.models import (
    IngestResult,
    Partition,
    UploadProgress,
    UploadStatus,
    WageRecord,
    WageSummary,
)


@pytest.mark.unit
class TestPartition:
    """Tests for the partition key"""

    def test_is_hashable_and_comparable(self):
        a = Partition(location="ucla", year=2023)
        b = Partition(location="ucla", year=2023)

        assert a == b
        assert len({a, b}) == 1
        assert str(a) == "ucla/2023"

    def test_is_frozen(self):
        partition = Partition(location="ucla", year=2023)

        with pytest.raises(ValidationError):
            partition.year = 2024

    @pytest.mark.parametrize("location,year", [("", 2023), ("ucla", 1800), ("x" * 51, 2023)])
    def test_rejects_invalid_values(self, location, year):
        with pytest.raises(ValidationError):
            Partition(location=location, year=year)


@pytest.mark.unit
class TestWageRecord:
    """Tests for WageRecord"""

    def test_defaults(self):
        record = WageRecord(location="ucla", year=2023)

        assert record.employee_id is None
        assert record.title == ""
        assert record.grosspay == Decimal("0")
        assert record.scraped_at.tzinfo is not None

    def test_negative_pay_rejected(self):
        with pytest.raises(ValidationError):
            WageRecord(location="ucla", year=2023, grosspay=Decimal("-1"))

    def test_key_and_names(self, make_record):
        record = make_record(7, firstname="JANE", lastname="DOE")

        assert record.key == ("ucla", 2023, 7)
        assert record.full_name == "JANE DOE"
        assert record.partition == Partition(location="ucla", year=2023)


@pytest.mark.unit
class TestUploadProgress:
    """Tests for UploadProgress"""

    def test_percent_complete(self):
        progress = UploadProgress(
            location="ucla",
            year=2023,
            total_records=400,
            uploaded_records=100,
            status=UploadStatus.PROCESSING,
        )

        assert progress.percent_complete == 25.0

    def test_empty_completed_job_is_fully_complete(self):
        progress = UploadProgress(location="ucla", year=2023, status=UploadStatus.COMPLETED)

        assert progress.percent_complete == 100.0

    def test_terminal_statuses(self):
        assert UploadStatus.COMPLETED.is_terminal
        assert UploadStatus.FAILED.is_terminal
        assert not UploadStatus.PROCESSING.is_terminal
        assert not UploadStatus.PENDING.is_terminal

    def test_status_from_string(self):
        progress = UploadProgress(location="ucla", year=2023, status="failed")

        assert progress.status is UploadStatus.FAILED


@pytest.mark.unit
class TestIngestResultAndSummary:
    """Tests for the ephemeral result and the summary artifact"""

    def test_ingest_result_ok(self, partition):
        result = IngestResult(partition=partition, job_id="j", status=UploadStatus.COMPLETED)

        assert result.ok
        assert not result.superseded

    def test_summary_partition(self):
        summary = WageSummary(location="ucla", year=2023)

        assert summary.partition == Partition(location="ucla", year=2023)
        assert summary.employee_count == 0
