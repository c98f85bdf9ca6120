"""
Unit tests for summary statistics.
"""

from decimal import Decimal

import pytest

from wage_pipeline.aggregation.statistics import (
    calculate_summary,
    gini_coefficient,
    percentile,
    pstdev,
)
from wage_pipeline.core.config import AggregationSettings


def d(*values) -> list[Decimal]:
    return [Decimal(str(v)) for v in values]


@pytest.mark.unit
class TestPercentile:
    """Tests for linear-interpolation percentiles"""

    @pytest.mark.parametrize("rank,expected", [
        (0, "10"),
        (10, "13"),
        (25, "17.5"),
        (50, "25"),
        (75, "32.5"),
        (90, "37"),
        (100, "40"),
    ])
    def test_interpolates_between_order_statistics(self, rank, expected):
        assert percentile(d(10, 20, 30, 40), rank) == Decimal(expected)

    def test_single_value(self):
        assert percentile(d(5), 99) == Decimal("5")

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            percentile([], 50)


@pytest.mark.unit
class TestGiniAndDeviation:
    """Tests for gini coefficient and population standard deviation"""

    def test_equal_pay_is_zero(self):
        assert gini_coefficient(d(50, 50, 50)) == Decimal("0.0000")

    def test_known_value(self):
        assert gini_coefficient(d(40, 10, 30, 20)) == Decimal("0.2500")

    def test_all_zero_pay(self):
        assert gini_coefficient(d(0, 0)) == Decimal("0.0000")

    def test_population_standard_deviation(self):
        assert pstdev(d(10, 20, 30, 40)).quantize(Decimal("0.01")) == Decimal("11.18")

    def test_single_value_has_no_deviation(self):
        assert pstdev(d(7)) == Decimal("0")


@pytest.mark.unit
class TestCalculateSummary:
    """Tests for the WageSummary calculator"""

    def test_aggregate_correctness(self, make_record, partition):
        records = [make_record(i, grosspay=pay) for i, pay in enumerate([10, 20, 30, 40], start=1)]

        summary = calculate_summary(records, partition)

        assert summary.employee_count == 4
        assert summary.total_gross_pay == Decimal("100.00")
        assert summary.avg_gross_pay == Decimal("25.00")
        assert summary.median_gross_pay == Decimal("25.00")
        assert summary.min_pay == Decimal("10.00")
        assert summary.max_pay == Decimal("40.00")
        assert summary.std_dev == Decimal("11.18")
        assert summary.gini_coefficient == Decimal("0.2500")
        assert summary.percentiles["p10"] == Decimal("13.00")
        assert summary.percentiles["p90"] == Decimal("37.00")

    def test_odd_count_median(self, make_record, partition):
        records = [make_record(i, grosspay=pay) for i, pay in enumerate([3, 1, 2], start=1)]

        assert calculate_summary(records, partition).median_gross_pay == Decimal("2.00")

    def test_percentile_ladder_is_non_decreasing(self, make_record, partition):
        pays = [12_000, 95_500.5, 41_000, 41_000, 250_000, 7, 63_250.25, 180_000, 0, 99_999.99]
        records = [make_record(i, grosspay=pay) for i, pay in enumerate(pays, start=1)]

        summary = calculate_summary(records, partition)
        ladder = [summary.percentiles[f"p{rank}"] for rank in (10, 25, 50, 75, 90, 95, 99)]

        assert ladder == sorted(ladder)
        assert summary.min_pay <= ladder[0]
        assert ladder[-1] <= summary.max_pay

    def test_zero_pay_records_are_counted(self, make_record, partition):
        records = [make_record(1, grosspay=0), make_record(2, grosspay=100)]

        summary = calculate_summary(records, partition)

        assert summary.employee_count == 2
        assert summary.min_pay == Decimal("0.00")

    def test_pay_components(self, make_record, partition):
        records = [
            make_record(1, grosspay=110, basepay=Decimal("100"), overtimepay=Decimal("10")),
            make_record(2, grosspay=55, basepay=Decimal("50"), adjustpay=Decimal("5")),
        ]

        components = calculate_summary(records, partition).pay_components

        assert components.total_base == Decimal("150.00")
        assert components.total_overtime == Decimal("10.00")
        assert components.total_adjustments == Decimal("5.00")
        assert components.avg_base == Decimal("75.00")
        assert components.avg_overtime == Decimal("5.00")
        assert components.avg_adjustments == Decimal("2.50")

    def test_empty_partition_is_zero_row(self, partition):
        summary = calculate_summary([], partition)

        assert summary.employee_count == 0
        assert summary.total_gross_pay == Decimal("0")
        assert summary.std_dev == Decimal("0")
        assert summary.percentiles == {
            "p10": None, "p25": None, "p50": None, "p75": None, "p90": None, "p95": None, "p99": None,
        }

    def test_configured_percentile_ranks(self, make_record, partition):
        records = [make_record(i, grosspay=pay) for i, pay in enumerate([10, 20, 30, 40], start=1)]

        summary = calculate_summary(records, partition, AggregationSettings(percentiles=[50, 5]))

        assert list(summary.percentiles) == ["p5", "p50"]
        assert summary.percentiles["p5"] == Decimal("11.50")
