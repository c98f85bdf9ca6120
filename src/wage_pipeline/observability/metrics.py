"""
Prometheus metrics collection for wage-pipeline

This module provides metrics instrumentation for monitoring
ingestion throughput, data quality, and aggregation runs.
"""
import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# INGESTION METRICS
# =======================

records_ingested_total = Counter(
    name="wage_records_ingested_total",
    documentation="Total number of wage records handled by the ingestion engine",
    labelnames=["location", "status"],  # status: committed, failed
    registry=REGISTRY,
)

chunks_processed_total = Counter(
    name="wage_chunks_processed_total",
    documentation="Total number of ingestion chunks processed",
    labelnames=["location", "status"],  # status: success, failure
    registry=REGISTRY,
)

chunk_write_duration_seconds = Histogram(
    name="wage_chunk_write_duration_seconds",
    documentation="Time spent upserting one chunk into the wage store",
    labelnames=["location"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
    registry=REGISTRY,
)

ingestion_duration_seconds = Histogram(
    name="wage_ingestion_duration_seconds",
    documentation="Time spent on one ingestion job",
    labelnames=["location", "status"],
    buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
    registry=REGISTRY,
)

upload_progress_ratio = Gauge(
    name="wage_upload_progress_ratio",
    documentation="Fraction of the current job's records committed (0-1)",
    labelnames=["location", "year"],
    registry=REGISTRY,
)

jobs_superseded_total = Counter(
    name="wage_jobs_superseded_total",
    documentation="Ingestion jobs stopped because a newer upload took over the partition",
    labelnames=["location"],
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

coercion_defaults_total = Counter(
    name="wage_coercion_defaults_total",
    documentation="Record fields replaced by a default because they could not be coerced",
    labelnames=["field_name"],
    registry=REGISTRY,
)

# =======================
# AGGREGATION METRICS
# =======================

aggregation_runs_total = Counter(
    name="wage_aggregation_runs_total",
    documentation="Total number of partition aggregation runs",
    labelnames=["location", "status"],  # status: success, failure
    registry=REGISTRY,
)

aggregation_duration_seconds = Histogram(
    name="wage_aggregation_duration_seconds",
    documentation="Time spent regenerating the artifacts of one partition",
    labelnames=["location"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

# =======================
# ERROR METRICS
# =======================

errors_total = Counter(
    name="wage_errors_total",
    documentation="Total number of errors",
    labelnames=["error_type", "component"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    """Content type for Prometheus metrics"""
    return CONTENT_TYPE_LATEST


def start_metrics_server(port: int | None = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Lazy import: only needed when the metrics endpoint is enabled
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(chunk_write_duration_seconds, location="ucla"):
            # do work
            pass
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        self.timer = self.histogram.labels(**self.labels).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    counter.labels(**labels).inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    """Set a gauge metric value"""
    gauge.labels(**labels).set(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    """Observe a value in a histogram metric"""
    histogram.labels(**labels).observe(value)


# =======================
# PIPELINE-SPECIFIC HELPERS
# =======================

def record_chunk(location: str, record_count: int, success: bool) -> None:
    """
    Record the outcome of one ingestion chunk.

    Args:
        location: Partition location
        record_count: Records in the chunk
        success: Whether the chunk committed
    """
    status = "success" if success else "failure"
    increment_counter(chunks_processed_total, 1, location=location, status=status)
    increment_counter(
        records_ingested_total,
        record_count,
        location=location,
        status="committed" if success else "failed",
    )
    if not success:
        increment_counter(errors_total, 1, error_type="StorageWriteFailure", component="ingestion")


def record_progress(location: str, year: int, uploaded: int, total: int) -> None:
    """Publish the committed fraction of a job."""
    ratio = uploaded / total if total else 1.0
    set_gauge(upload_progress_ratio, ratio, location=location, year=str(year))


def record_coercion_default(field_name: str) -> None:
    """Count a field that was defaulted during normalization."""
    increment_counter(coercion_defaults_total, 1, field_name=field_name)


def record_aggregation(location: str, success: bool, duration_seconds: float) -> None:
    """
    Record one aggregation run.

    Args:
        location: Partition location
        success: Whether all artifacts were written
        duration_seconds: Time taken by the run
    """
    status = "success" if success else "failure"
    increment_counter(aggregation_runs_total, 1, location=location, status=status)
    observe_histogram(aggregation_duration_seconds, duration_seconds, location=location)
    if not success:
        increment_counter(errors_total, 1, error_type="AggregationFailure", component="aggregation")
