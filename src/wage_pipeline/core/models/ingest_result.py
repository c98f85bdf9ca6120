"""
IngestResult model returned by the batch ingestion engine (ephemeral).
"""

from pydantic import BaseModel, Field

from .partition import Partition
from .upload_progress import UploadStatus


class IngestResult(BaseModel):
    """
    Outcome of one ingestion job.

    Attributes:
        partition: Partition the job was submitted for
        job_id: Ledger job identifier
        status: Status of the job when it stopped
        total_records: Records submitted
        attempted: Records handed to the wage store
        succeeded: Records in committed chunks
        chunks_written: Number of committed chunks
        superseded: True when a newer upload took over the partition
        error_message: Storage failure cause, if any
        duration_seconds: Wall-clock duration of the job
    """

    partition: Partition
    job_id: str
    status: UploadStatus
    total_records: int = Field(default=0, ge=0)
    attempted: int = Field(default=0, ge=0)
    succeeded: int = Field(default=0, ge=0)
    chunks_written: int = Field(default=0, ge=0)
    superseded: bool = False
    error_message: str | None = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == UploadStatus.COMPLETED
