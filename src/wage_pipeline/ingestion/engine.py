"""
Batch ingestion engine.

Flow: materialize records -> reset progress row -> upsert chunk by chunk
under the partition lock -> advance progress -> complete or fail
"""

import time
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from wage_pipeline.core.config import PipelineSettings, load_settings
from wage_pipeline.core.errors import StorageError
from wage_pipeline.core.models import IngestResult, Partition, UploadStatus, WageRecord
from wage_pipeline.normalizer import RecordNormalizer, partition_from_path, read_wage_file
from wage_pipeline.observability.logger import PartitionLogger, get_logger, log_operation
from wage_pipeline.observability.metrics import (
    chunk_write_duration_seconds,
    increment_counter,
    ingestion_duration_seconds,
    jobs_superseded_total,
    observe_histogram,
    record_chunk,
    record_progress,
    track_duration,
)
from wage_pipeline.warehouse.base import ProgressLedger, WageStore

logger = get_logger(__name__)


def chunked(records: list[WageRecord], size: int) -> Iterator[list[WageRecord]]:
    """Split records into consecutive chunks of at most size records."""
    for start in range(0, len(records), size):
        yield records[start:start + size]


class IngestionEngine:
    """
    Drives chunked, idempotent upsert of wage records for one partition.

    Chunks are written sequentially; each is one atomic upsert_batch call.
    The progress ledger is advanced after every committed chunk, so
    uploaded_records never decreases and never exceeds total_records.

    A storage failure marks the job failed and stops it; chunks already
    committed stand. A newer job for the same partition supersedes this
    one: the next ledger update is rejected and this job stops writing.
    """

    def __init__(
        self,
        wage_store: WageStore,
        progress_ledger: ProgressLedger,
        chunk_size: int | None = None,
        settings: PipelineSettings | None = None,
    ):
        """
        Initialize ingestion engine.

        Args:
            wage_store: Destination of the records
            progress_ledger: Keyed progress store shared by all jobs
            chunk_size: Records per chunk (defaults to configuration)
            settings: Pipeline settings (loaded from config if None)
        """
        self.wage_store = wage_store
        self.progress_ledger = progress_ledger
        self.settings = settings or load_settings()
        self.chunk_size = chunk_size if chunk_size is not None else self.settings.ingestion.chunk_size

        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

    def ingest(self, records: Iterable[WageRecord], partition: Partition) -> IngestResult:
        """
        Ingest records into a partition.

        Args:
            records: Normalized records; a lazy stream is fully consumed
                before the progress row is touched
            partition: Partition the job reports progress for

        Returns:
            IngestResult with attempted/succeeded counts and job status

        Raises:
            MalformedPayload: If the record stream fails while being
                materialized (no progress row is written)
        """
        batch = list(records)
        started = time.monotonic()

        progress = self.progress_ledger.start(partition, len(batch))
        job_id = progress.job_id
        result = IngestResult(
            partition=partition,
            job_id=job_id,
            status=UploadStatus.PROCESSING,
            total_records=len(batch),
        )

        with log_operation(
            "Ingesting partition",
            logger=logger,
            partition=str(partition),
            job_id=job_id,
            total_records=len(batch),
            chunk_size=self.chunk_size,
        ):
            result = self._write_chunks(batch, partition, result)

        result.duration_seconds = round(time.monotonic() - started, 3)
        observe_histogram(
            ingestion_duration_seconds,
            result.duration_seconds,
            location=partition.location,
            status=result.status.value,
        )
        return result

    def ingest_payload(
        self,
        payload: Any,
        location: str | None = None,
        year: int | None = None,
        source: str | None = None,
    ) -> IngestResult:
        """
        Normalize a decoded wage payload and ingest it.

        Args:
            payload: Decoded wage file
            location: Fallback location when the payload has none
            year: Fallback year when the payload has none
            source: Origin of the payload, for log messages

        Returns:
            IngestResult

        Raises:
            MalformedPayload: If the payload is unusable (nothing is ingested)
        """
        normalizer = RecordNormalizer(source=source)
        partition = normalizer.resolve_partition(payload, location, year)
        records = list(normalizer.normalize(payload, location, year))

        if normalizer.coercion_defaults:
            logger.info(
                f"Normalized {len(records)} records with {normalizer.coercion_defaults} defaulted fields",
                extra={"partition": str(partition), "source": source},
            )
        return self.ingest(records, partition)

    def ingest_file(
        self,
        path: str | Path,
        location: str | None = None,
        year: int | None = None,
    ) -> IngestResult:
        """
        Read, normalize and ingest one wage file.

        The partition implied by <location>/wages_<year>.json is used when
        neither the payload nor the arguments provide one.

        Raises:
            FileNotFoundError: If the file does not exist
            MalformedPayload: If the file is not a wage payload
        """
        payload = read_wage_file(path)
        from_path = partition_from_path(path)
        if from_path is not None:
            location = location or from_path.location
            year = year if year is not None else from_path.year
        return self.ingest_payload(payload, location=location, year=year, source=str(path))

    def _write_chunks(
        self,
        batch: list[WageRecord],
        partition: Partition,
        result: IngestResult,
    ) -> IngestResult:
        job_id = result.job_id
        log = PartitionLogger(logger, str(partition), job_id)
        uploaded = 0

        for index, chunk in enumerate(chunked(batch, self.chunk_size), start=1):
            result.attempted += len(chunk)

            try:
                with self.wage_store.partition_lock(partition):
                    with track_duration(chunk_write_duration_seconds, location=partition.location):
                        self.wage_store.upsert_batch(chunk)
            except StorageError as e:
                record_chunk(partition.location, len(chunk), success=False)
                log.error(
                    f"Chunk {index} failed for {partition}, stopping job",
                    extra={"chunk": index, "error": str(e)},
                )
                self.progress_ledger.fail(partition, job_id, uploaded, str(e))
                result.status = UploadStatus.FAILED
                result.error_message = str(e)
                return result

            uploaded += len(chunk)
            result.succeeded = uploaded
            result.chunks_written += 1
            record_chunk(partition.location, len(chunk), success=True)

            if not self.progress_ledger.advance(partition, job_id, uploaded):
                return self._superseded(partition, result)

            record_progress(partition.location, partition.year, uploaded, len(batch))
            log.info(
                f"Committed chunk {index} for {partition} ({uploaded}/{len(batch)})",
                extra={"chunk": index},
            )

        if not self.progress_ledger.complete(partition, job_id, uploaded):
            return self._superseded(partition, result)

        record_progress(partition.location, partition.year, uploaded, len(batch))
        result.status = UploadStatus.COMPLETED
        return result

    def _superseded(self, partition: Partition, result: IngestResult) -> IngestResult:
        increment_counter(jobs_superseded_total, 1, location=partition.location)
        logger.warning(
            f"Job {result.job_id} for {partition} was superseded by a newer upload",
            extra={"partition": str(partition), "job_id": result.job_id, "succeeded": result.succeeded},
        )
        result.superseded = True
        return result
