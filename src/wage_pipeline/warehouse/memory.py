"""
In-memory storage backends.

Thread safe implementations of the storage interfaces, used for dry runs
and as the fake store in tests.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from wage_pipeline.core.models import (
    Partition,
    TitleAnalysis,
    UploadProgress,
    UploadStatus,
    WagePyramid,
    WageRecord,
    WageSummary,
)

from .base import ArtifactStore, ProgressLedger, WageStore, new_job_id
from .merge_policy import overwrite_merge


class InMemoryWageStore(WageStore):
    """Wage store backed by a dictionary keyed on (location, year, employee_id)."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, int, int], WageRecord] = {}
        self._anonymous: list[WageRecord] = []
        self._lock = threading.Lock()
        self._partition_locks: dict[Partition, threading.RLock] = {}

    def upsert_batch(self, records: list[WageRecord]) -> int:
        if not records:
            return 0

        with self._lock:
            for record in records:
                if record.employee_id is None:
                    self._anonymous.append(record)
                    continue
                existing = self._records.get(record.key)
                self._records[record.key] = (
                    overwrite_merge(existing, record) if existing is not None else record
                )
        return len(records)

    def fetch_partition(self, partition: Partition) -> list[WageRecord]:
        with self._lock:
            return [
                record
                for record in self._all_records()
                if record.location == partition.location and record.year == partition.year
            ]

    def count(self, partition: Partition) -> int:
        return len(self.fetch_partition(partition))

    def list_partitions(self) -> list[Partition]:
        with self._lock:
            partitions = {record.partition for record in self._all_records()}
        return sorted(partitions, key=lambda p: (p.location, p.year))

    @contextmanager
    def partition_lock(self, partition: Partition) -> Iterator[None]:
        with self._lock:
            lock = self._partition_locks.setdefault(partition, threading.RLock())
        with lock:
            yield

    def _all_records(self) -> list[WageRecord]:
        return [*self._records.values(), *self._anonymous]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records) + len(self._anonymous)


class InMemoryProgressLedger(ProgressLedger):
    """Progress ledger backed by a dictionary keyed on partition."""

    def __init__(self) -> None:
        self._rows: dict[Partition, UploadProgress] = {}
        self._lock = threading.Lock()

    def start(self, partition: Partition, total_records: int) -> UploadProgress:
        row = UploadProgress(
            location=partition.location,
            year=partition.year,
            job_id=new_job_id(),
            total_records=total_records,
            uploaded_records=0,
            status=UploadStatus.PROCESSING,
            started_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._rows[partition] = row
        return row

    def advance(self, partition: Partition, job_id: str, uploaded_records: int) -> bool:
        with self._lock:
            row = self._owned_running_row(partition, job_id)
            if row is None:
                return False
            if uploaded_records < row.uploaded_records or uploaded_records > row.total_records:
                return False
            self._rows[partition] = row.model_copy(update={"uploaded_records": uploaded_records})
            return True

    def complete(self, partition: Partition, job_id: str, uploaded_records: int) -> bool:
        return self._finish(partition, job_id, uploaded_records, UploadStatus.COMPLETED, None)

    def fail(
        self,
        partition: Partition,
        job_id: str,
        uploaded_records: int,
        error_message: str,
    ) -> bool:
        return self._finish(partition, job_id, uploaded_records, UploadStatus.FAILED, error_message)

    def get(self, partition: Partition) -> UploadProgress | None:
        with self._lock:
            return self._rows.get(partition)

    def list_progress(self, location: str | None = None) -> list[UploadProgress]:
        with self._lock:
            rows = [
                row for row in self._rows.values()
                if location is None or row.location == location
            ]
        return sorted(rows, key=lambda r: (r.location, r.year))

    def _finish(
        self,
        partition: Partition,
        job_id: str,
        uploaded_records: int,
        status: UploadStatus,
        error_message: str | None,
    ) -> bool:
        with self._lock:
            row = self._owned_running_row(partition, job_id)
            if row is None:
                return False
            self._rows[partition] = row.model_copy(update={
                "uploaded_records": max(row.uploaded_records, min(uploaded_records, row.total_records)),
                "status": status,
                "completed_at": datetime.now(timezone.utc),
                "error_message": error_message,
            })
            return True

    def _owned_running_row(self, partition: Partition, job_id: str) -> UploadProgress | None:
        row = self._rows.get(partition)
        if row is None or row.job_id != job_id or row.status != UploadStatus.PROCESSING:
            return None
        return row


class InMemoryArtifactStore(ArtifactStore):
    """Artifact store holding each partition's three artifacts as one tuple."""

    def __init__(self) -> None:
        self._artifacts: dict[Partition, tuple[WageSummary, WagePyramid, TitleAnalysis]] = {}
        self._lock = threading.Lock()

    def replace_artifacts(
        self,
        summary: WageSummary,
        pyramid: WagePyramid,
        titles: TitleAnalysis,
    ) -> None:
        partition = summary.partition
        if pyramid.partition != partition or titles.partition != partition:
            raise ValueError("All artifacts must belong to the same partition")
        with self._lock:
            self._artifacts[partition] = (summary, pyramid, titles)

    def get_summary(self, partition: Partition) -> WageSummary | None:
        artifacts = self._get(partition)
        return artifacts[0] if artifacts else None

    def get_pyramid(self, partition: Partition) -> WagePyramid | None:
        artifacts = self._get(partition)
        return artifacts[1] if artifacts else None

    def get_title_analysis(self, partition: Partition) -> TitleAnalysis | None:
        artifacts = self._get(partition)
        return artifacts[2] if artifacts else None

    def list_summaries(self, location: str | None = None) -> list[WageSummary]:
        with self._lock:
            summaries = [
                summary for summary, _, _ in self._artifacts.values()
                if location is None or summary.location == location
            ]
        return sorted(summaries, key=lambda s: (s.location, s.year))

    def _get(self, partition: Partition) -> tuple[WageSummary, WagePyramid, TitleAnalysis] | None:
        with self._lock:
            return self._artifacts.get(partition)
