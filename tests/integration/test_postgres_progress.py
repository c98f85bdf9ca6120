"""
Integration tests for the PostgreSQL progress ledger.
"""
import pytest

from wage_pipeline.core.models import Partition, UploadStatus
from wage_pipeline.warehouse import PostgresProgressLedger


@pytest.fixture
def ledger(clean_db) -> PostgresProgressLedger:
    return PostgresProgressLedger(clean_db)


@pytest.mark.integration
class TestPostgresProgressLedger:
    """Tests for PostgresProgressLedger"""

    def test_start_creates_processing_row(self, ledger, partition):
        row = ledger.start(partition, 10)

        assert row.status == UploadStatus.PROCESSING
        assert row.job_id
        assert row.uploaded_records == 0
        assert row.started_at is not None
        assert ledger.get(partition).job_id == row.job_id

    def test_advance_is_monotonic_and_bounded(self, ledger, partition):
        job_id = ledger.start(partition, 10).job_id

        assert ledger.advance(partition, job_id, 4)
        assert ledger.advance(partition, job_id, 4)
        assert not ledger.advance(partition, job_id, 2)
        assert not ledger.advance(partition, job_id, 11)
        assert ledger.get(partition).uploaded_records == 4

    def test_complete(self, ledger, partition):
        job_id = ledger.start(partition, 3).job_id
        ledger.advance(partition, job_id, 3)

        assert ledger.complete(partition, job_id, 3)

        row = ledger.get(partition)
        assert row.status == UploadStatus.COMPLETED
        assert row.completed_at is not None
        assert row.percent_complete == 100.0

    def test_fail_keeps_committed_progress(self, ledger, partition):
        job_id = ledger.start(partition, 10).job_id
        ledger.advance(partition, job_id, 6)

        assert ledger.fail(partition, job_id, 6, "connection reset")

        row = ledger.get(partition)
        assert row.status == UploadStatus.FAILED
        assert row.uploaded_records == 6
        assert row.error_message == "connection reset"

    def test_restart_supersedes_previous_job(self, ledger, partition):
        old_job = ledger.start(partition, 10).job_id
        ledger.advance(partition, old_job, 5)

        new_job = ledger.start(partition, 20).job_id

        assert not ledger.advance(partition, old_job, 6)
        assert not ledger.complete(partition, old_job, 10)
        assert not ledger.fail(partition, old_job, 5, "late")

        row = ledger.get(partition)
        assert row.job_id == new_job
        assert row.status == UploadStatus.PROCESSING
        assert row.total_records == 20
        assert row.uploaded_records == 0
        assert row.error_message is None

    def test_restart_after_failure_clears_error(self, ledger, partition):
        job_id = ledger.start(partition, 2).job_id
        ledger.fail(partition, job_id, 0, "boom")

        row = ledger.start(partition, 2)

        assert row.error_message is None
        assert row.completed_at is None

    def test_list_progress(self, ledger):
        ledger.start(Partition(location="ucsd", year=2023), 1)
        ledger.start(Partition(location="ucla", year=2023), 1)
        ledger.start(Partition(location="ucla", year=2022), 1)

        assert [str(r.partition) for r in ledger.list_progress()] == ["ucla/2022", "ucla/2023", "ucsd/2023"]
        assert [r.year for r in ledger.list_progress("ucla")] == [2022, 2023]

    def test_unknown_partition(self, ledger, partition):
        assert ledger.get(partition) is None
