"""
Storage boundary: wage store, progress ledger and artifact store.

PostgreSQL implementations for production, in-memory ones for dry runs
and tests.
"""

from .artifacts import PostgresArtifactStore
from .base import ArtifactStore, ProgressLedger, WageStore, new_job_id
from .connection import DatabaseConnectionPool
from .memory import InMemoryArtifactStore, InMemoryProgressLedger, InMemoryWageStore
from .merge_policy import MUTABLE_FIELDS, conflict_update_clause, overwrite_merge
from .progress import PostgresProgressLedger
from .queries import PartitionAggregate, SearchFilters, SearchPage, WageQueries
from .schema_mgmt import SchemaManager
from .upsert import PostgresWageStore

__all__ = [
    "WageStore",
    "ProgressLedger",
    "ArtifactStore",
    "new_job_id",
    "overwrite_merge",
    "conflict_update_clause",
    "MUTABLE_FIELDS",
    "DatabaseConnectionPool",
    "SchemaManager",
    "PostgresWageStore",
    "PostgresProgressLedger",
    "PostgresArtifactStore",
    "WageQueries",
    "SearchFilters",
    "SearchPage",
    "PartitionAggregate",
    "InMemoryWageStore",
    "InMemoryProgressLedger",
    "InMemoryArtifactStore",
]
