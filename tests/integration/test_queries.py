"""
Integration tests for the read-path queries.
"""
from decimal import Decimal

import pytest

from wage_pipeline.warehouse import PostgresWageStore, SearchFilters, WageQueries


@pytest.fixture
def queries(clean_db, make_record) -> WageQueries:
    PostgresWageStore(clean_db).upsert_batch([
        make_record(1, grosspay="151200.50", firstname="JANE", lastname="DOE", title="PROF-AY"),
        make_record(2, grosspay="42500", firstname="JOHN", lastname="ROE", title="CLERK"),
        make_record(3, grosspay="38000", firstname="ANA", lastname="LI", title="CLERK"),
        make_record(4, grosspay="61000", firstname="JANE", lastname="ROE", title="NURSE", location="ucsd"),
        make_record(5, grosspay="20000", firstname="JANE", lastname="DOE", title="CLERK", year=2022),
    ])
    return WageQueries(clean_db, page_size=2)


@pytest.mark.integration
class TestSearch:
    """Tests for WageQueries.search"""

    def test_ordered_by_grosspay_descending(self, queries):
        page = queries.search(SearchFilters())

        assert page.total_count == 5
        assert page.total_pages == 3
        assert page.has_next and not page.has_previous
        assert [r.employee_id for r in page.records] == [1, 4]

    def test_later_page(self, queries):
        page = queries.search(SearchFilters(page=3))

        assert [r.employee_id for r in page.records] == [5]
        assert not page.has_next
        assert page.has_previous

    def test_name_is_case_insensitive(self, queries):
        page = queries.search(SearchFilters(name="jane doe"))

        assert page.total_count == 2
        assert {r.year for r in page.records} == {2022, 2023}

    def test_last_name_only(self, queries):
        assert queries.search(SearchFilters(name="roe")).total_count == 2

    def test_combined_filters(self, queries):
        page = queries.search(SearchFilters(title="clerk", location="ucla", year=2023))

        assert [r.employee_id for r in page.records] == [2, 3]

    def test_no_match(self, queries):
        page = queries.search(SearchFilters(name="nobody"))

        assert page.records == []
        assert page.total_pages == 1


@pytest.mark.integration
class TestAggregates:
    """Tests for partition aggregates and dimension listings"""

    def test_aggregate_partitions(self, queries):
        aggregates = queries.aggregate_partitions(location="ucla")

        assert [(a.location, a.year) for a in aggregates] == [("ucla", 2022), ("ucla", 2023)]
        current = aggregates[1]
        assert current.employee_count == 3
        assert current.total_pay == Decimal("231700.50")
        assert current.avg_pay == Decimal("77233.50")
        assert current.min_pay == Decimal("38000.00")
        assert current.max_pay == Decimal("151200.50")

    def test_list_locations_and_years(self, queries):
        assert queries.list_locations() == ["ucla", "ucsd"]
        assert queries.list_years() == [2022, 2023]
        assert queries.list_years("ucsd") == [2023]
