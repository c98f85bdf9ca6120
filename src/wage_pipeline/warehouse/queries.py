"""
Read-path queries over the wage warehouse.

Search, per-partition aggregates and dimension listings used by the admin
CLI. Nothing here writes.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from wage_pipeline.core.models import WageRecord

from .connection import DatabaseConnectionPool
from .upsert import RECORD_COLUMNS

PAGE_SIZE = 50


class SearchFilters(BaseModel):
    """
    Filters for wage record search. Empty filters match everything.

    Attributes:
        name: Case-insensitive match on first, last or "first last" name
        title: Case-insensitive substring of the job title
        location: Exact location
        year: Exact year
        page: 1-based page number
    """

    name: str | None = None
    title: str | None = None
    location: str | None = None
    year: int | None = None
    page: int = Field(default=1, ge=1)


class SearchPage(BaseModel):
    """One page of search results ordered by grosspay descending."""

    records: list[WageRecord]
    total_count: int
    page: int
    page_size: int = PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total_count // self.page_size))

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


class PartitionAggregate(BaseModel):
    """Live aggregate of one partition computed straight from wage_records."""

    location: str
    year: int
    employee_count: int
    total_pay: Decimal
    avg_pay: Decimal
    min_pay: Decimal
    max_pay: Decimal


class WageQueries:
    """Read-only queries against wage_records."""

    def __init__(self, pool: DatabaseConnectionPool, page_size: int = PAGE_SIZE):
        self.pool = pool
        self.page_size = page_size

    def search(self, filters: SearchFilters) -> SearchPage:
        """
        Search wage records.

        Args:
            filters: Search filters and page number

        Returns:
            Requested page plus the total match count
        """
        where, params = self._where_clause(filters)

        count_query = f"SELECT COUNT(*) AS total_count FROM wage_records {where}"
        total_count = self.pool.execute_query(count_query, tuple(params))[0]["total_count"]

        offset = (filters.page - 1) * self.page_size
        query = f"""
            SELECT {", ".join(RECORD_COLUMNS)}
            FROM wage_records
            {where}
            ORDER BY grosspay DESC, id
            LIMIT %s OFFSET %s
        """
        rows = self.pool.execute_query(query, (*params, self.page_size, offset))

        return SearchPage(
            records=[WageRecord(**row) for row in rows],
            total_count=total_count,
            page=filters.page,
            page_size=self.page_size,
        )

    def aggregate_partitions(
        self,
        location: str | None = None,
        year: int | None = None,
    ) -> list[PartitionAggregate]:
        """
        Sum, mean, count, min and max of grosspay per partition.

        Args:
            location: Restrict to one location
            year: Restrict to one year

        Returns:
            Aggregates ordered by location, then year
        """
        where, params = self._where_clause(SearchFilters(location=location, year=year))
        query = f"""
            SELECT
                location,
                year,
                COUNT(*) AS employee_count,
                COALESCE(SUM(grosspay), 0) AS total_pay,
                ROUND(COALESCE(AVG(grosspay), 0), 2) AS avg_pay,
                COALESCE(MIN(grosspay), 0) AS min_pay,
                COALESCE(MAX(grosspay), 0) AS max_pay
            FROM wage_records
            {where}
            GROUP BY location, year
            ORDER BY location, year
        """
        return [PartitionAggregate(**row) for row in self.pool.execute_query(query, tuple(params))]

    def list_locations(self) -> list[str]:
        rows = self.pool.execute_query(
            "SELECT DISTINCT location FROM wage_records ORDER BY location"
        )
        return [row["location"] for row in rows]

    def list_years(self, location: str | None = None) -> list[int]:
        if location:
            rows = self.pool.execute_query(
                "SELECT DISTINCT year FROM wage_records WHERE location = %s ORDER BY year",
                (location,),
            )
        else:
            rows = self.pool.execute_query("SELECT DISTINCT year FROM wage_records ORDER BY year")
        return [row["year"] for row in rows]

    @staticmethod
    def _where_clause(filters: SearchFilters) -> tuple[str, list[Any]]:
        conditions: list[str] = []
        params: list[Any] = []

        if filters.name:
            pattern = f"%{filters.name.strip()}%"
            conditions.append(
                "(firstname ILIKE %s OR lastname ILIKE %s"
                " OR (firstname || ' ' || lastname) ILIKE %s)"
            )
            params.extend([pattern, pattern, pattern])
        if filters.title:
            conditions.append("title ILIKE %s")
            params.append(f"%{filters.title.strip()}%")
        if filters.location:
            conditions.append("location = %s")
            params.append(filters.location)
        if filters.year is not None:
            conditions.append("year = %s")
            params.append(filters.year)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return where, params
