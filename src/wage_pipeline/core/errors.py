"""
Error taxonomy for the wage pipeline.

Batch-level parse failures and storage failures are exceptions. Field-level
coercion defaults are warnings that get logged, never raised.
"""


class WagePipelineError(Exception):
    """Base class for all wage pipeline failures."""


class ConfigurationError(WagePipelineError):
    """Raised for invalid pipeline configuration."""


class MalformedPayload(WagePipelineError):
    """
    Raised when a wage file cannot be parsed as a wage payload.

    Fatal for the whole batch: nothing from the payload is ingested.
    """

    def __init__(self, message: str, source: str | None = None):
        self.message = message
        self.source = source
        prefix = f"{source}: " if source else ""
        super().__init__(f"{prefix}{message}")


class StorageError(WagePipelineError):
    """Base class for wage store, ledger and artifact store failures."""


class StorageWriteFailure(StorageError):
    """
    Raised when a write to durable storage fails.

    During ingestion this is fatal to the current chunk and the job; the
    engine records it in the progress ledger instead of propagating it.
    """

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"[{operation}] {message}")


class AggregationError(StorageError):
    """Raised when the aggregation engine cannot read a partition."""


class RecordCoercionDefault(UserWarning):
    """
    A record field that could not be coerced and was replaced by a default.

    Non-fatal. Instances are logged and counted, never raised.
    """

    def __init__(self, field_name: str, raw_value: object, default: object):
        self.field_name = field_name
        self.raw_value = raw_value
        self.default = default
        super().__init__(
            f"{field_name}: could not coerce {raw_value!r}, defaulted to {default!r}"
        )
