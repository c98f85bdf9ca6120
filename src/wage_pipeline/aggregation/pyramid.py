"""
Pay-bracket pyramid.

Each record lands in exactly one bracket: lower bound inclusive, upper
bound exclusive. Amounts outside the configured range are clamped to the
first or last bracket so bracket counts always add up to the partition.
"""

import statistics
from collections.abc import Sequence
from decimal import Decimal

from wage_pipeline.core.config import AggregationSettings, BracketDefinition
from wage_pipeline.core.models import Partition, WageBracket, WagePyramid, WageRecord
from wage_pipeline.normalizer.coercion import ZERO, to_cents

from .statistics import mean
from .titles import group_by_title, top_bracket_titles

PERCENT = Decimal("0.01")


def bracket_index(amount: Decimal, brackets: Sequence[BracketDefinition]) -> int:
    """Index of the bracket holding amount."""
    for index, bracket in enumerate(brackets):
        if bracket.max_value is None or amount < bracket.max_value:
            return index
    return len(brackets) - 1


def calculate_pyramid(
    records: Sequence[WageRecord],
    partition: Partition,
    settings: AggregationSettings | None = None,
) -> WagePyramid:
    """
    Build the WagePyramid of a partition.

    Args:
        records: All records of the partition
        partition: Partition being processed
        settings: Aggregation settings (brackets, titles per bracket)

    Returns:
        WagePyramid with only the non-empty brackets, ascending
    """
    settings = settings or AggregationSettings()
    brackets = settings.brackets

    members: list[list[WageRecord]] = [[] for _ in brackets]
    for record in records:
        members[bracket_index(record.grosspay, brackets)].append(record)

    total_employees = len(records)
    total_pay = sum((record.grosspay for record in records), ZERO)

    emitted = []
    for definition, bracket_records in zip(brackets, members):
        if not bracket_records:
            continue

        pays = sorted(record.grosspay for record in bracket_records)
        emitted.append(
            WageBracket(
                range=definition.range,
                min_value=definition.min_value,
                max_value=definition.max_value,
                count=len(pays),
                percentage=(Decimal(len(pays)) * 100 / total_employees).quantize(PERCENT),
                total_pay=to_cents(sum(pays, ZERO)),
                avg_pay=to_cents(mean(pays)),
                median_pay=to_cents(statistics.median(pays)),
                top_titles=top_bracket_titles(
                    group_by_title(bracket_records, settings.redacted_titles),
                    settings.bracket_top_titles,
                ),
            )
        )

    return WagePyramid(
        location=partition.location,
        year=partition.year,
        total_employees=total_employees,
        total_pay=to_cents(total_pay),
        brackets=emitted,
    )
