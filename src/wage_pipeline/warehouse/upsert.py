"""
Idempotent upsert operations for wage records.

Implements INSERT ... ON CONFLICT UPDATE for reliable, idempotent writes.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from psycopg import Error as PsycopgError

from wage_pipeline.core.errors import StorageError, StorageWriteFailure
from wage_pipeline.core.models import Partition, WageRecord

from .base import WageStore
from .connection import DatabaseConnectionPool
from .merge_policy import IDENTITY_FIELDS, MUTABLE_FIELDS, conflict_update_clause

RECORD_COLUMNS = IDENTITY_FIELDS + MUTABLE_FIELDS


class PostgresWageStore(WageStore):
    """
    Handles idempotent upsert operations to the wage_records table.

    All writes use PostgreSQL's INSERT ... ON CONFLICT UPDATE
    keyed on (location, year, employee_id), so re-ingesting a file
    leaves the table unchanged.
    """

    UPSERT_QUERY = f"""
        INSERT INTO wage_records ({", ".join(RECORD_COLUMNS)})
        VALUES ({", ".join(["%s"] * len(RECORD_COLUMNS))})
        ON CONFLICT (location, year, employee_id) DO UPDATE SET
                {conflict_update_clause()}
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize wage store.

        Args:
            pool: Database connection pool
        """
        self.pool = pool

    def upsert_batch(self, records: list[WageRecord]) -> int:
        """
        Upsert a batch of wage records in one transaction.

        Args:
            records: List of WageRecord instances

        Returns:
            Number of records upserted

        Raises:
            StorageWriteFailure: If the batch was rolled back
        """
        if not records:
            return 0

        data_tuples = [
            tuple(getattr(record, column) for column in RECORD_COLUMNS)
            for record in records
        ]

        try:
            with self.pool.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.executemany(self.UPSERT_QUERY, data_tuples)
                conn.commit()
        except PsycopgError as e:
            raise StorageWriteFailure("upsert_batch", str(e)) from e

        return len(records)

    def fetch_partition(self, partition: Partition) -> list[WageRecord]:
        query = f"""
            SELECT {", ".join(RECORD_COLUMNS)}
            FROM wage_records
            WHERE location = %s AND year = %s
            ORDER BY id
        """
        try:
            rows = self.pool.execute_query(query, (partition.location, partition.year))
        except PsycopgError as e:
            raise StorageError(f"Failed to read partition {partition}: {e}") from e
        return [WageRecord(**row) for row in rows]

    def count(self, partition: Partition) -> int:
        query = """
            SELECT COUNT(*) AS record_count
            FROM wage_records
            WHERE location = %s AND year = %s
        """
        try:
            result = self.pool.execute_query(query, (partition.location, partition.year))
        except PsycopgError as e:
            raise StorageError(f"Failed to count partition {partition}: {e}") from e
        return result[0]["record_count"]

    def list_partitions(self) -> list[Partition]:
        query = """
            SELECT DISTINCT location, year
            FROM wage_records
            ORDER BY location, year
        """
        try:
            rows = self.pool.execute_query(query)
        except PsycopgError as e:
            raise StorageError(f"Failed to list partitions: {e}") from e
        return [Partition(**row) for row in rows]

    @contextmanager
    def partition_lock(self, partition: Partition) -> Iterator[None]:
        """
        Hold a session advisory lock on the partition.

        The lock lives on its own pooled connection, so it also excludes
        writers in other processes sharing the database.
        """
        key = (partition.location, partition.year)
        try:
            with self.pool.get_connection() as conn:
                conn.autocommit = True
                conn.execute("SELECT pg_advisory_lock(hashtext(%s), %s)", key)
                try:
                    yield
                finally:
                    conn.execute("SELECT pg_advisory_unlock(hashtext(%s), %s)", key)
                    conn.autocommit = False
        except PsycopgError as e:
            raise StorageWriteFailure("partition_lock", f"Could not lock partition {partition}: {e}") from e
