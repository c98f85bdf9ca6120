"""
Summary statistics over the grosspay of a partition.

All arithmetic is done in Decimal; results are quantized to cents.
"""

import statistics
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from wage_pipeline.core.config import AggregationSettings
from wage_pipeline.core.models import PayComponents, Partition, WageRecord, WageSummary
from wage_pipeline.normalizer.coercion import ZERO, to_cents

GINI_PLACES = Decimal("0.0001")


def percentile_key(rank: int) -> str:
    return f"p{rank}"


def percentile(sorted_values: Sequence[Decimal], rank: float) -> Decimal:
    """
    Percentile by linear interpolation between order statistics.

    The position of rank p in n sorted values is (n - 1) * p / 100; a
    fractional position interpolates between its two neighbours.

    Args:
        sorted_values: Values in ascending order, at least one
        rank: Percentile rank, 0-100

    Returns:
        Interpolated value (unquantized)
    """
    if not sorted_values:
        raise ValueError("percentile requires at least one value")

    position = Decimal(len(sorted_values) - 1) * Decimal(str(rank)) / Decimal(100)
    lower = int(position)
    fraction = position - lower

    if lower + 1 >= len(sorted_values):
        return sorted_values[-1]

    low, high = sorted_values[lower], sorted_values[lower + 1]
    return low + (high - low) * fraction


def gini_coefficient(values: Sequence[Decimal]) -> Decimal:
    """
    Gini coefficient of a set of non-negative amounts.

    0 means everyone earns the same; values approach 1 as pay
    concentrates in fewer records.
    """
    if not values:
        return Decimal("0.0000")

    ordered = sorted(values)
    total = sum(ordered, ZERO)
    if total == 0:
        return Decimal("0.0000")

    n = len(ordered)
    weighted = sum(((2 * i - n - 1) * value for i, value in enumerate(ordered, start=1)), ZERO)
    return (weighted / (n * total)).quantize(GINI_PLACES, rounding=ROUND_HALF_UP)


def mean(values: Sequence[Decimal]) -> Decimal:
    return sum(values, ZERO) / len(values) if values else ZERO


def pstdev(values: Sequence[Decimal]) -> Decimal:
    """Population standard deviation; zero for fewer than two values."""
    if len(values) < 2:
        return ZERO
    return statistics.pstdev(values)


def calculate_summary(
    records: Sequence[WageRecord],
    partition: Partition,
    settings: AggregationSettings | None = None,
) -> WageSummary:
    """
    Compute the WageSummary of a partition.

    Every record counts, including zero grosspay. An empty partition
    yields the zero row: all amounts 0 and every percentile None.

    Args:
        records: All records of the partition
        partition: Partition being summarized
        settings: Aggregation settings (percentile ranks)

    Returns:
        WageSummary
    """
    settings = settings or AggregationSettings()

    if not records:
        return WageSummary(
            location=partition.location,
            year=partition.year,
            percentiles={percentile_key(rank): None for rank in settings.percentiles},
        )

    gross = sorted(record.grosspay for record in records)
    count = len(gross)

    base = [record.basepay for record in records]
    overtime = [record.overtimepay for record in records]
    adjust = [record.adjustpay for record in records]

    components = PayComponents(
        total_base=to_cents(sum(base, ZERO)),
        total_overtime=to_cents(sum(overtime, ZERO)),
        total_adjustments=to_cents(sum(adjust, ZERO)),
        avg_base=to_cents(mean(base)),
        avg_overtime=to_cents(mean(overtime)),
        avg_adjustments=to_cents(mean(adjust)),
    )

    return WageSummary(
        location=partition.location,
        year=partition.year,
        employee_count=count,
        total_gross_pay=to_cents(sum(gross, ZERO)),
        avg_gross_pay=to_cents(mean(gross)),
        median_gross_pay=to_cents(statistics.median(gross)),
        std_dev=to_cents(pstdev(gross)),
        min_pay=to_cents(gross[0]),
        max_pay=to_cents(gross[-1]),
        gini_coefficient=gini_coefficient(gross),
        percentiles={
            percentile_key(rank): to_cents(percentile(gross, rank))
            for rank in settings.percentiles
        },
        pay_components=components,
    )
