"""
Unit tests for structured logging and metrics helpers.
"""
import io
import json

import pytest

from wage_pipeline.observability.logger import PartitionLogger, log_operation, setup_logger
from wage_pipeline.observability.metrics import (
    generate_metrics,
    get_content_type,
    record_aggregation,
    record_chunk,
    record_progress,
)


@pytest.fixture
def json_stream():
    stream = io.StringIO()
    logger = setup_logger("wage-pipeline.test", level="DEBUG", format_type="json", stream=stream)
    return logger, stream


def log_lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


@pytest.mark.unit
class TestLogging:
    """Tests for the JSON logger"""

    def test_json_fields(self, json_stream):
        logger, stream = json_stream

        logger.warning("Defaulted grosspay", extra={"field_name": "grosspay"})

        (line,) = log_lines(stream)
        assert line["message"] == "Defaulted grosspay"
        assert line["level"] == "WARNING"
        assert line["logger"] == "wage-pipeline.test"
        assert line["field_name"] == "grosspay"
        assert "timestamp" in line

    def test_partition_logger_stamps_context(self, json_stream):
        logger, stream = json_stream

        PartitionLogger(logger, "ucla/2023", job_id="job-1").info("Committed chunk 1", extra={"chunk": 1})

        (line,) = log_lines(stream)
        assert line["partition"] == "ucla/2023"
        assert line["job_id"] == "job-1"
        assert line["chunk"] == 1

    def test_log_operation_failure(self, json_stream):
        logger, stream = json_stream

        with pytest.raises(RuntimeError):
            with log_operation("Summarizing partition", logger=logger, partition="ucla/2023"):
                raise RuntimeError("boom")

        started, failed = log_lines(stream)
        assert started["message"] == "Starting: Summarizing partition"
        assert failed["status"] == "error"
        assert failed["error_type"] == "RuntimeError"
        assert failed["partition"] == "ucla/2023"

    def test_level_filtering(self):
        stream = io.StringIO()
        logger = setup_logger("wage-pipeline.quiet", level="ERROR", format_type="text", stream=stream)

        logger.info("hidden")
        logger.error("shown")

        assert "hidden" not in stream.getvalue()
        assert "shown" in stream.getvalue()


@pytest.mark.unit
class TestMetrics:
    """Tests for Prometheus helpers"""

    def test_helpers_publish_metrics(self):
        record_chunk("metricsville", 5, success=True)
        record_chunk("metricsville", 2, success=False)
        record_progress("metricsville", 2023, 5, 10)
        record_aggregation("metricsville", success=True, duration_seconds=0.25)

        output = generate_metrics().decode()

        assert 'wage_chunks_processed_total{location="metricsville",status="success"} 1.0' in output
        assert 'wage_upload_progress_ratio{location="metricsville",year="2023"} 0.5' in output
        assert "wage_aggregation_runs_total" in output
        assert get_content_type().startswith("text/plain")
