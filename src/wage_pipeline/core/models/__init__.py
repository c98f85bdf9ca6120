"""
Core data models for the wage pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .ingest_result import IngestResult
from .partition import Partition
from .title_analysis import TitleAnalysis, TitleStats
from .upload_progress import UploadProgress, UploadStatus
from .wage_pyramid import BracketTitle, WageBracket, WagePyramid
from .wage_record import WageRecord
from .wage_summary import PayComponents, WageSummary

__all__ = [
    "Partition",
    "WageRecord",
    "UploadStatus",
    "UploadProgress",
    "IngestResult",
    "PayComponents",
    "WageSummary",
    "BracketTitle",
    "WageBracket",
    "WagePyramid",
    "TitleStats",
    "TitleAnalysis",
]
