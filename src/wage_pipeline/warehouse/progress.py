"""
PostgreSQL progress ledger.

One upload_progress row per (location, year). Every mutation after start()
is guarded by job_id and status, so a superseded job's late updates match
no row and are discarded.
"""

from psycopg import Error as PsycopgError

from wage_pipeline.core.errors import StorageError, StorageWriteFailure
from wage_pipeline.core.models import Partition, UploadProgress, UploadStatus

from .base import ProgressLedger, new_job_id
from .connection import DatabaseConnectionPool

PROGRESS_COLUMNS = """
    location, year, job_id, total_records, uploaded_records, status,
    started_at, completed_at, error_message
"""


class PostgresProgressLedger(ProgressLedger):
    """Progress ledger stored in the upload_progress table."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def start(self, partition: Partition, total_records: int) -> UploadProgress:
        query = f"""
            INSERT INTO upload_progress (
                location, year, job_id, total_records, uploaded_records, status,
                started_at, completed_at, error_message
            )
            VALUES (%s, %s, %s, %s, 0, %s, NOW(), NULL, NULL)
            ON CONFLICT (location, year) DO UPDATE SET
                job_id = EXCLUDED.job_id,
                total_records = EXCLUDED.total_records,
                uploaded_records = 0,
                status = EXCLUDED.status,
                started_at = EXCLUDED.started_at,
                completed_at = NULL,
                error_message = NULL
            RETURNING {PROGRESS_COLUMNS}
        """
        params = (
            partition.location,
            partition.year,
            new_job_id(),
            total_records,
            UploadStatus.PROCESSING.value,
        )

        try:
            with self.pool.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    row = cur.fetchone()
                conn.commit()
        except PsycopgError as e:
            raise StorageWriteFailure("progress_start", str(e)) from e

        return UploadProgress(**row)

    def advance(self, partition: Partition, job_id: str, uploaded_records: int) -> bool:
        command = """
            UPDATE upload_progress
            SET uploaded_records = %s
            WHERE location = %s AND year = %s
              AND job_id = %s AND status = %s
              AND uploaded_records <= %s AND %s <= total_records
        """
        params = (
            uploaded_records,
            partition.location,
            partition.year,
            job_id,
            UploadStatus.PROCESSING.value,
            uploaded_records,
            uploaded_records,
        )
        return self._update("progress_advance", command, params)

    def complete(self, partition: Partition, job_id: str, uploaded_records: int) -> bool:
        return self._finish(partition, job_id, uploaded_records, UploadStatus.COMPLETED, None)

    def fail(
        self,
        partition: Partition,
        job_id: str,
        uploaded_records: int,
        error_message: str,
    ) -> bool:
        return self._finish(partition, job_id, uploaded_records, UploadStatus.FAILED, error_message)

    def get(self, partition: Partition) -> UploadProgress | None:
        query = f"""
            SELECT {PROGRESS_COLUMNS}
            FROM upload_progress
            WHERE location = %s AND year = %s
        """
        try:
            result = self.pool.execute_query(query, (partition.location, partition.year))
        except PsycopgError as e:
            raise StorageError(f"Failed to read progress for {partition}: {e}") from e
        return UploadProgress(**result[0]) if result else None

    def list_progress(self, location: str | None = None) -> list[UploadProgress]:
        if location:
            query = f"""
                SELECT {PROGRESS_COLUMNS}
                FROM upload_progress
                WHERE location = %s
                ORDER BY location, year
            """
            params = (location,)
        else:
            query = f"""
                SELECT {PROGRESS_COLUMNS}
                FROM upload_progress
                ORDER BY location, year
            """
            params = ()

        try:
            rows = self.pool.execute_query(query, params)
        except PsycopgError as e:
            raise StorageError(f"Failed to list upload progress: {e}") from e
        return [UploadProgress(**row) for row in rows]

    def _finish(
        self,
        partition: Partition,
        job_id: str,
        uploaded_records: int,
        status: UploadStatus,
        error_message: str | None,
    ) -> bool:
        command = """
            UPDATE upload_progress
            SET uploaded_records = GREATEST(uploaded_records, LEAST(%s, total_records)),
                status = %s,
                completed_at = NOW(),
                error_message = %s
            WHERE location = %s AND year = %s
              AND job_id = %s AND status = %s
        """
        params = (
            uploaded_records,
            status.value,
            error_message,
            partition.location,
            partition.year,
            job_id,
            UploadStatus.PROCESSING.value,
        )
        return self._update(f"progress_{status.value}", command, params)

    def _update(self, operation: str, command: str, params: tuple) -> bool:
        try:
            return self.pool.execute_command(command, params) == 1
        except PsycopgError as e:
            raise StorageWriteFailure(operation, str(e)) from e
