"""
Structured logging for wage-pipeline

JSON lines via python-json-logger by default, a plain text layout for local
runs (LOG_FORMAT=text). Ingestion and aggregation log through a
PartitionLogger so every line of a job carries its partition and job id.
"""
import logging
import os
import sys
import time
from typing import IO, Any

from pythonjsonlogger import jsonlogger

DEFAULT_LOGGER_NAME = "wage-pipeline"

JSON_FIELDS = "%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s"
TEXT_FIELDS = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s - %(message)s"


class WageJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter emitting one object per line.

    Fixed keys: timestamp, level, logger, module, function, process_id,
    thread_id. Anything passed through ``extra`` (partition, job_id, chunk,
    field_name, ...) becomes a top-level key as well.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["process_id"] = record.process
        log_record["thread_id"] = record.thread


def build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return WageJsonFormatter(fmt=JSON_FIELDS, datefmt="%Y-%m-%dT%H:%M:%S")
    return logging.Formatter(fmt=TEXT_FIELDS, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """
    Configure a logger with a single stream handler.

    Args:
        name: Logger name
        level: Log level name (defaults to env var LOG_LEVEL, then INFO)
        format_type: "json" or "text" (defaults to env var LOG_FORMAT, then json)
        stream: Destination stream (defaults to stdout)

    Returns:
        Configured logger instance
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(build_formatter(format_type or os.getenv("LOG_FORMAT", "json")))
    logger.addHandler(handler)

    # Output goes to our handler only
    logger.propagate = False

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Return the named logger, configuring it on first use."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name)
    return logger


class PartitionLogger(logging.LoggerAdapter):
    """
    Logger adapter that stamps partition and job id on every record.

    Usage:
        log = PartitionLogger(logger, partition="ucla/2023", job_id=job_id)
        log.info("Committed chunk 3", extra={"chunk": 3})
    """

    def __init__(self, logger: logging.Logger, partition: str, job_id: str | None = None):
        context: dict[str, Any] = {"partition": partition}
        if job_id is not None:
            context["job_id"] = job_id
        super().__init__(logger, context)

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


class log_operation:
    """
    Context manager logging the start, end and duration of an operation

    Usage:
        with log_operation("Ingesting partition", logger=logger, partition="ucla/2023"):
            # do work
            pass
    """

    def __init__(
        self,
        operation_name: str,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        **extra_fields,
    ):
        """
        Initialize operation logger

        Args:
            operation_name: Name of the operation
            logger: Logger or adapter (uses the package logger if None)
            **extra_fields: Additional fields to include in logs
        """
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.start_time: float | None = None
        self.duration: float = 0.0

    def __enter__(self):
        self.start_time = time.monotonic()
        self.logger.info(
            f"Starting: {self.operation_name}",
            extra={"operation": self.operation_name, **self.extra_fields},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.monotonic() - self.start_time
        fields = {
            "operation": self.operation_name,
            "duration_seconds": round(self.duration, 3),
            **self.extra_fields,
        }

        if exc_type is None:
            self.logger.info(f"Completed: {self.operation_name}", extra={**fields, "status": "success"})
        else:
            self.logger.error(
                f"Failed: {self.operation_name}",
                extra={
                    **fields,
                    "status": "error",
                    "error_type": exc_type.__name__,
                    "error_message": str(exc_val),
                },
                exc_info=True,
            )
        return False
