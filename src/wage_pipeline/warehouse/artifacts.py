"""
PostgreSQL artifact store.

The summary, pyramid and title analysis of a partition are written in a
single transaction, so readers see either the previous set or the new one.
"""

from psycopg import Error as PsycopgError
from psycopg.types.json import Jsonb

from wage_pipeline.core.errors import StorageWriteFailure
from wage_pipeline.core.models import (
    Partition,
    PayComponents,
    TitleAnalysis,
    WagePyramid,
    WageSummary,
)

from .base import ArtifactStore
from .connection import DatabaseConnectionPool

SUMMARY_COLUMNS = (
    "location",
    "year",
    "employee_count",
    "total_gross_pay",
    "avg_gross_pay",
    "median_gross_pay",
    "std_dev",
    "min_pay",
    "max_pay",
    "gini_coefficient",
    "total_base",
    "total_overtime",
    "total_adjustments",
    "avg_base",
    "avg_overtime",
    "avg_adjustments",
    "percentiles",
    "generated_at",
)

COMPONENT_COLUMNS = tuple(PayComponents.model_fields)


def _assignments(columns: tuple[str, ...]) -> str:
    updates = [f"{column} = EXCLUDED.{column}" for column in columns if column not in ("location", "year")]
    updates.append("uploaded_at = NOW()")
    return ",\n                ".join(updates)


class PostgresArtifactStore(ArtifactStore):
    """Artifact store over the wage_summaries, wage_pyramids and title_analysis tables."""

    SUMMARY_UPSERT = f"""
        INSERT INTO wage_summaries ({", ".join(SUMMARY_COLUMNS)})
        VALUES ({", ".join(["%s"] * len(SUMMARY_COLUMNS))})
        ON CONFLICT (location, year) DO UPDATE SET
                {_assignments(SUMMARY_COLUMNS)}
    """

    PYRAMID_UPSERT = f"""
        INSERT INTO wage_pyramids (location, year, total_employees, total_pay, brackets, generated_at)
        VALUES (%s, %s, %s, %s, %s, %s)
        ON CONFLICT (location, year) DO UPDATE SET
                {_assignments(("total_employees", "total_pay", "brackets", "generated_at"))}
    """

    TITLES_UPSERT = f"""
        INSERT INTO title_analysis (location, year, unique_titles, top_titles, generated_at)
        VALUES (%s, %s, %s, %s, %s)
        ON CONFLICT (location, year) DO UPDATE SET
                {_assignments(("unique_titles", "top_titles", "generated_at"))}
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def replace_artifacts(
        self,
        summary: WageSummary,
        pyramid: WagePyramid,
        titles: TitleAnalysis,
    ) -> None:
        partition = summary.partition
        if pyramid.partition != partition or titles.partition != partition:
            raise ValueError("All artifacts must belong to the same partition")

        components = summary.pay_components
        summary_params = (
            summary.location,
            summary.year,
            summary.employee_count,
            summary.total_gross_pay,
            summary.avg_gross_pay,
            summary.median_gross_pay,
            summary.std_dev,
            summary.min_pay,
            summary.max_pay,
            summary.gini_coefficient,
            *(getattr(components, column) for column in COMPONENT_COLUMNS),
            Jsonb(summary.model_dump(mode="json")["percentiles"]),
            summary.generated_at,
        )
        pyramid_params = (
            pyramid.location,
            pyramid.year,
            pyramid.total_employees,
            pyramid.total_pay,
            Jsonb(pyramid.model_dump(mode="json")["brackets"]),
            pyramid.generated_at,
        )
        titles_params = (
            titles.location,
            titles.year,
            titles.unique_titles,
            Jsonb(titles.model_dump(mode="json")["top_titles"]),
            titles.generated_at,
        )

        try:
            with self.pool.get_connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        cur.execute(self.SUMMARY_UPSERT, summary_params)
                        cur.execute(self.PYRAMID_UPSERT, pyramid_params)
                        cur.execute(self.TITLES_UPSERT, titles_params)
        except PsycopgError as e:
            raise StorageWriteFailure("replace_artifacts", f"{partition}: {e}") from e

    def get_summary(self, partition: Partition) -> WageSummary | None:
        query = f"""
            SELECT {", ".join(SUMMARY_COLUMNS)}
            FROM wage_summaries
            WHERE location = %s AND year = %s
        """
        result = self.pool.execute_query(query, (partition.location, partition.year))
        return self._summary_from_row(result[0]) if result else None

    def get_pyramid(self, partition: Partition) -> WagePyramid | None:
        query = """
            SELECT location, year, total_employees, total_pay, brackets, generated_at
            FROM wage_pyramids
            WHERE location = %s AND year = %s
        """
        result = self.pool.execute_query(query, (partition.location, partition.year))
        return WagePyramid(**result[0]) if result else None

    def get_title_analysis(self, partition: Partition) -> TitleAnalysis | None:
        query = """
            SELECT location, year, unique_titles, top_titles, generated_at
            FROM title_analysis
            WHERE location = %s AND year = %s
        """
        result = self.pool.execute_query(query, (partition.location, partition.year))
        return TitleAnalysis(**result[0]) if result else None

    def list_summaries(self, location: str | None = None) -> list[WageSummary]:
        if location:
            query = f"""
                SELECT {", ".join(SUMMARY_COLUMNS)}
                FROM wage_summaries
                WHERE location = %s
                ORDER BY location, year
            """
            params = (location,)
        else:
            query = f"""
                SELECT {", ".join(SUMMARY_COLUMNS)}
                FROM wage_summaries
                ORDER BY location, year
            """
            params = ()

        return [self._summary_from_row(row) for row in self.pool.execute_query(query, params)]

    @staticmethod
    def _summary_from_row(row: dict) -> WageSummary:
        row = dict(row)
        components = PayComponents(**{column: row.pop(column) for column in COMPONENT_COLUMNS})
        return WageSummary(**row, pay_components=components)
