"""
Batch ingestion of normalized wage records.
"""

from .engine import IngestionEngine, chunked

__all__ = ["IngestionEngine", "chunked"]
