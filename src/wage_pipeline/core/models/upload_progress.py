"""
UploadProgress model tracking one ingestion job for a partition.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from .partition import Partition


class UploadStatus(str, Enum):
    """Lifecycle states of an ingestion job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadStatus.COMPLETED, UploadStatus.FAILED)


class UploadProgress(BaseModel):
    """
    Progress ledger row for one (location, year) partition.

    At most one row exists per partition. A new upload resets the row and
    takes ownership of it through a fresh job_id.

    Attributes:
        location: Partition location
        year: Partition year
        job_id: Identifier of the job currently owning the row
        total_records: Records in the job
        uploaded_records: Records committed so far (never decreases within a job)
        status: pending, processing, completed or failed
        started_at: When the job started
        completed_at: When the job reached a terminal state
        error_message: Cause of failure, None unless failed
    """

    location: str
    year: int
    job_id: str | None = None
    total_records: int = Field(default=0, ge=0)
    uploaded_records: int = Field(default=0, ge=0)
    status: UploadStatus = UploadStatus.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "location": "berkeley",
                "year": 2023,
                "job_id": "0b5c7f1e9a3d4c6b8e2f1a0d9c8b7a6e",
                "total_records": 48211,
                "uploaded_records": 12000,
                "status": "processing",
                "started_at": "2024-03-01T12:00:00Z",
                "completed_at": None,
                "error_message": None
            }
        }

    @property
    def partition(self) -> Partition:
        return Partition(location=self.location, year=self.year)

    @property
    def percent_complete(self) -> float:
        if self.total_records == 0:
            return 100.0 if self.status == UploadStatus.COMPLETED else 0.0
        return round(self.uploaded_records / self.total_records * 100, 1)
