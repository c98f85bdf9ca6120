"""
Schema management operations for the wage warehouse.

Handles DDL for the wage, progress and artifact tables.
"""

from psycopg import Error as PsycopgError

from wage_pipeline.core.errors import StorageWriteFailure
from wage_pipeline.observability.logger import get_logger

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

TABLES = (
    "title_analysis",
    "wage_pyramids",
    "wage_summaries",
    "upload_progress",
    "wage_records",
)

SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS wage_records (
    id SERIAL PRIMARY KEY,
    location VARCHAR(50) NOT NULL,
    year INTEGER NOT NULL,
    employee_id BIGINT,
    firstname VARCHAR(100) NOT NULL DEFAULT '',
    lastname VARCHAR(100) NOT NULL DEFAULT '',
    title VARCHAR(200) NOT NULL DEFAULT '',
    basepay DECIMAL(12, 2) NOT NULL DEFAULT 0,
    overtimepay DECIMAL(12, 2) NOT NULL DEFAULT 0,
    adjustpay DECIMAL(12, 2) NOT NULL DEFAULT 0,
    grosspay DECIMAL(12, 2) NOT NULL DEFAULT 0,
    scraped_at TIMESTAMPTZ NOT NULL,
    uploaded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (location, year, employee_id)
);

CREATE INDEX IF NOT EXISTS idx_wage_records_partition ON wage_records (location, year);
CREATE INDEX IF NOT EXISTS idx_wage_records_grosspay ON wage_records (grosspay DESC);
CREATE INDEX IF NOT EXISTS idx_wage_records_title ON wage_records (title);
CREATE INDEX IF NOT EXISTS idx_wage_records_name ON wage_records (lastname, firstname);

CREATE TABLE IF NOT EXISTS upload_progress (
    id SERIAL PRIMARY KEY,
    location VARCHAR(50) NOT NULL,
    year INTEGER NOT NULL,
    job_id VARCHAR(64),
    total_records INTEGER NOT NULL DEFAULT 0,
    uploaded_records INTEGER NOT NULL DEFAULT 0,
    status VARCHAR(20) NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'processing', 'completed', 'failed')),
    started_at TIMESTAMPTZ,
    completed_at TIMESTAMPTZ,
    error_message TEXT,
    UNIQUE (location, year)
);

CREATE TABLE IF NOT EXISTS wage_summaries (
    id SERIAL PRIMARY KEY,
    location VARCHAR(50) NOT NULL,
    year INTEGER NOT NULL,
    employee_count INTEGER NOT NULL DEFAULT 0,
    total_gross_pay DECIMAL(15, 2) NOT NULL DEFAULT 0,
    avg_gross_pay DECIMAL(12, 2) NOT NULL DEFAULT 0,
    median_gross_pay DECIMAL(12, 2) NOT NULL DEFAULT 0,
    std_dev DECIMAL(12, 2) NOT NULL DEFAULT 0,
    min_pay DECIMAL(12, 2) NOT NULL DEFAULT 0,
    max_pay DECIMAL(12, 2) NOT NULL DEFAULT 0,
    gini_coefficient DECIMAL(6, 4) NOT NULL DEFAULT 0,
    total_base DECIMAL(15, 2) NOT NULL DEFAULT 0,
    total_overtime DECIMAL(15, 2) NOT NULL DEFAULT 0,
    total_adjustments DECIMAL(15, 2) NOT NULL DEFAULT 0,
    avg_base DECIMAL(12, 2) NOT NULL DEFAULT 0,
    avg_overtime DECIMAL(12, 2) NOT NULL DEFAULT 0,
    avg_adjustments DECIMAL(12, 2) NOT NULL DEFAULT 0,
    percentiles JSONB NOT NULL DEFAULT '{}'::jsonb,
    generated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    uploaded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (location, year)
);

CREATE TABLE IF NOT EXISTS wage_pyramids (
    id SERIAL PRIMARY KEY,
    location VARCHAR(50) NOT NULL,
    year INTEGER NOT NULL,
    total_employees INTEGER NOT NULL DEFAULT 0,
    total_pay DECIMAL(15, 2) NOT NULL DEFAULT 0,
    brackets JSONB NOT NULL DEFAULT '[]'::jsonb,
    generated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    uploaded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (location, year)
);

CREATE TABLE IF NOT EXISTS title_analysis (
    id SERIAL PRIMARY KEY,
    location VARCHAR(50) NOT NULL,
    year INTEGER NOT NULL,
    unique_titles INTEGER NOT NULL DEFAULT 0,
    top_titles JSONB NOT NULL DEFAULT '[]'::jsonb,
    generated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    uploaded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (location, year)
);
"""


class SchemaManager:
    """
    Creates and drops the warehouse tables.

    All DDL is idempotent so create_tables can run on every deploy.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize schema manager.

        Args:
            pool: Database connection pool
        """
        self.pool = pool

    def create_tables(self) -> None:
        """
        Create every table and index that does not exist yet.

        Raises:
            StorageWriteFailure: If the DDL could not be applied
        """
        try:
            with self.pool.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(SCHEMA_DDL)
                conn.commit()
        except PsycopgError as e:
            raise StorageWriteFailure("create_tables", str(e)) from e

        logger.info("Warehouse schema ready", extra={"tables": list(TABLES)})

    def drop_tables(self) -> None:
        """Drop every warehouse table, discarding all data."""
        try:
            with self.pool.get_connection() as conn:
                with conn.cursor() as cur:
                    for table in TABLES:
                        cur.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
                conn.commit()
        except PsycopgError as e:
            raise StorageWriteFailure("drop_tables", str(e)) from e

        logger.warning("Warehouse schema dropped", extra={"tables": list(TABLES)})

    def truncate_tables(self) -> None:
        """Remove every row while keeping the tables."""
        with self.pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"TRUNCATE TABLE {', '.join(TABLES)} RESTART IDENTITY")
            conn.commit()

    def existing_tables(self) -> list[str]:
        """
        Warehouse tables present in the connected database.

        Returns:
            Table names, sorted
        """
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = current_schema() AND table_name = ANY(%s)
            ORDER BY table_name
        """
        rows = self.pool.execute_query(query, (list(TABLES),))
        return [row["table_name"] for row in rows]
