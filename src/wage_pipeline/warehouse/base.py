"""
Storage boundary interfaces.

The ingestion and aggregation engines only talk to these abstractions, so
PostgreSQL and in-memory backends are interchangeable.
"""

import uuid
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from wage_pipeline.core.models import (
    Partition,
    TitleAnalysis,
    UploadProgress,
    WagePyramid,
    WageRecord,
    WageSummary,
)


def new_job_id() -> str:
    """Generate an identifier for an ingestion job."""
    return uuid.uuid4().hex


class WageStore(ABC):
    """
    Durable store of WageRecords keyed by (location, year, employee_id).

    Records with an employee_id are merged with overwrite_merge on key
    match. Records without one are anonymized and always added.
    """

    @abstractmethod
    def upsert_batch(self, records: list[WageRecord]) -> int:
        """
        Upsert a batch of records as one atomic unit.

        Args:
            records: Records to insert or update

        Returns:
            Number of records written

        Raises:
            StorageWriteFailure: If the batch could not be committed
        """

    @abstractmethod
    def fetch_partition(self, partition: Partition) -> list[WageRecord]:
        """Return every record of a partition."""

    @abstractmethod
    def count(self, partition: Partition) -> int:
        """Number of records in a partition."""

    @abstractmethod
    def list_partitions(self) -> list[Partition]:
        """Partitions that hold at least one record, sorted."""

    @abstractmethod
    def partition_lock(self, partition: Partition) -> AbstractContextManager[None]:
        """
        Exclusive lock on one partition.

        Held around each ingestion chunk and around a whole aggregation run
        so an aggregation never scans a half-written chunk.
        """


class ProgressLedger(ABC):
    """
    Keyed store of UploadProgress rows, one per partition.

    Every mutation after start() names the job_id that start() returned;
    a mutation from a superseded job is ignored and reported as False.
    """

    @abstractmethod
    def start(self, partition: Partition, total_records: int) -> UploadProgress:
        """
        Reset the partition's row to a new processing job.

        Args:
            partition: Partition being uploaded
            total_records: Records in the new job

        Returns:
            The new row, carrying the new job_id
        """

    @abstractmethod
    def advance(self, partition: Partition, job_id: str, uploaded_records: int) -> bool:
        """
        Persist the committed record count of a running job.

        Returns:
            False when job_id no longer owns the row
        """

    @abstractmethod
    def complete(self, partition: Partition, job_id: str, uploaded_records: int) -> bool:
        """Mark a running job completed and stamp completed_at."""

    @abstractmethod
    def fail(
        self,
        partition: Partition,
        job_id: str,
        uploaded_records: int,
        error_message: str,
    ) -> bool:
        """Mark a running job failed, recording the cause."""

    @abstractmethod
    def get(self, partition: Partition) -> UploadProgress | None:
        """Current row of a partition (read only)."""

    @abstractmethod
    def list_progress(self, location: str | None = None) -> list[UploadProgress]:
        """Rows for every partition, or for one location (read only)."""


class ArtifactStore(ABC):
    """
    Store of precomputed artifacts keyed by (location, year).

    The three artifacts of a partition are always replaced together.
    """

    @abstractmethod
    def replace_artifacts(
        self,
        summary: WageSummary,
        pyramid: WagePyramid,
        titles: TitleAnalysis,
    ) -> None:
        """
        Atomically replace all artifacts of one partition.

        Raises:
            StorageWriteFailure: If the write failed; prior artifacts remain
        """

    @abstractmethod
    def get_summary(self, partition: Partition) -> WageSummary | None:
        """Stored summary of a partition."""

    @abstractmethod
    def get_pyramid(self, partition: Partition) -> WagePyramid | None:
        """Stored pyramid of a partition."""

    @abstractmethod
    def get_title_analysis(self, partition: Partition) -> TitleAnalysis | None:
        """Stored title analysis of a partition."""

    @abstractmethod
    def list_summaries(self, location: str | None = None) -> list[WageSummary]:
        """Stored summaries, ordered by location and year."""
