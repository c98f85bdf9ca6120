"""
Aggregation engine: regenerates the precomputed artifacts of a partition.

Flow: lock partition -> read all records -> compute summary, pyramid and
title analysis -> replace all three artifacts together
"""

import time

from wage_pipeline.core.config import PipelineSettings, load_settings
from wage_pipeline.core.errors import AggregationError, StorageError, StorageWriteFailure
from wage_pipeline.core.models import Partition, TitleAnalysis, WagePyramid, WageSummary
from wage_pipeline.observability.logger import get_logger, log_operation
from wage_pipeline.observability.metrics import record_aggregation
from wage_pipeline.warehouse.base import ArtifactStore, WageStore

from .pyramid import calculate_pyramid
from .statistics import calculate_summary
from .titles import analyze_titles

logger = get_logger(__name__)

Artifacts = tuple[WageSummary, WagePyramid, TitleAnalysis]


class AggregationEngine:
    """
    Full recomputation of a partition's summary, pyramid and title analysis.

    The partition lock is held from the read through the write, so an
    aggregation never observes a half-written ingestion chunk.
    """

    def __init__(
        self,
        wage_store: WageStore,
        artifact_store: ArtifactStore,
        settings: PipelineSettings | None = None,
    ):
        """
        Initialize aggregation engine.

        Args:
            wage_store: Source of wage records
            artifact_store: Destination of the artifacts
            settings: Pipeline settings (loaded from config if None)
        """
        self.wage_store = wage_store
        self.artifact_store = artifact_store
        self.settings = settings or load_settings()

    def summarize(self, partition: Partition) -> Artifacts:
        """
        Regenerate and store the artifacts of one partition.

        An empty partition yields and stores the zero artifacts.

        Args:
            partition: Partition to summarize

        Returns:
            Tuple of (WageSummary, WagePyramid, TitleAnalysis)

        Raises:
            AggregationError: If the partition could not be read
            StorageWriteFailure: If the artifacts could not be written;
                previously stored artifacts are left untouched
        """
        started = time.monotonic()
        try:
            with log_operation("Summarizing partition", logger=logger, partition=str(partition)):
                artifacts = self._summarize_locked(partition)
        except StorageError:
            record_aggregation(partition.location, success=False, duration_seconds=time.monotonic() - started)
            raise

        record_aggregation(partition.location, success=True, duration_seconds=time.monotonic() - started)
        return artifacts

    def summarize_all(self) -> dict[Partition, Artifacts]:
        """
        Regenerate the artifacts of every partition in the wage store.

        Returns:
            Artifacts keyed by partition

        Raises:
            AggregationError: If any partition could not be read
            StorageWriteFailure: If any partition could not be written
        """
        results: dict[Partition, Artifacts] = {}
        for partition in self.wage_store.list_partitions():
            results[partition] = self.summarize(partition)
        return results

    def _summarize_locked(self, partition: Partition) -> Artifacts:
        settings = self.settings.aggregation

        with self.wage_store.partition_lock(partition):
            try:
                records = self.wage_store.fetch_partition(partition)
            except StorageWriteFailure:
                raise
            except StorageError as e:
                raise AggregationError(f"Cannot read partition {partition}: {e}") from e

            summary = calculate_summary(records, partition, settings)
            pyramid = calculate_pyramid(records, partition, settings)
            titles = analyze_titles(records, partition, settings)

            self.artifact_store.replace_artifacts(summary, pyramid, titles)

        logger.info(
            f"Replaced artifacts for {partition}",
            extra={
                "partition": str(partition),
                "employee_count": summary.employee_count,
                "brackets": len(pyramid.brackets),
                "unique_titles": titles.unique_titles,
            },
        )
        return summary, pyramid, titles
