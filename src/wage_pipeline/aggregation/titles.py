"""
Job-title frequency analysis.
"""

import statistics
from collections import defaultdict
from collections.abc import Iterable, Sequence
from decimal import Decimal

from wage_pipeline.core.config import AggregationSettings
from wage_pipeline.core.models import BracketTitle, Partition, TitleAnalysis, TitleStats, WageRecord
from wage_pipeline.normalizer.coercion import ZERO, to_cents

from .statistics import mean, pstdev

# Checked in order; the first category with a matching keyword wins
TITLE_CATEGORIES: list[tuple[str, tuple[str, ...]]] = [
    ("Academic", ("PROF", "LECTURER", "INSTRUCTOR", "TEACHER", "DEAN", "CHAIR",
                  "RESEARCHER", "POST DOC", "POSTDOC", "STUDENT")),
    ("Medical", ("PHYSICIAN", "NURSE", "DOCTOR", "SURGEON", "MEDICAL", "CLINICAL",
                 "THERAPIST", "PHARMACY", "HEALTH")),
    ("Executive", ("PRESIDENT", "VICE PRESIDENT", "VP ", "CHIEF", "CEO", "CFO", "CTO",
                   "DIRECTOR", "EXECUTIVE")),
    ("IT/Technical", ("PROGRAMMER", "DEVELOPER", "ENGINEER", "ANALYST", "DATA", "IT ",
                      "SOFTWARE", "SYSTEM", "NETWORK", "DATABASE")),
    ("Administrative", ("ADMIN", "ASSISTANT", "COORDINATOR", "MANAGER", "CLERK",
                        "SECRETARY", "RECEPTIONIST", "OFFICE")),
    ("Facilities", ("CUSTODIAN", "MAINTENANCE", "GROUNDS", "FACILITIES", "SECURITY",
                    "POLICE", "PARKING", "UTILITY")),
]


def categorize_title(title: str) -> str:
    """
    Coarse category of a job title from keyword matching.

    Args:
        title: Job title in any case

    Returns:
        Category name, "Other" when no keyword matches
    """
    upper = title.upper()
    for category, keywords in TITLE_CATEGORIES:
        if any(keyword in upper for keyword in keywords):
            return category
    return "Other"


def group_by_title(
    records: Iterable[WageRecord],
    redacted_titles: Iterable[str] = (),
) -> dict[str, list[Decimal]]:
    """
    Grosspay values per exact title.

    Empty titles and redaction markers are not titles and are skipped.
    """
    redacted = set(redacted_titles)
    groups: dict[str, list[Decimal]] = defaultdict(list)
    for record in records:
        if record.title and record.title not in redacted:
            groups[record.title].append(record.grosspay)
    return dict(groups)


def rank_titles(groups: dict[str, list[Decimal]]) -> list[str]:
    """Titles ordered by count descending, then title ascending."""
    return sorted(groups, key=lambda title: (-len(groups[title]), title))


def top_bracket_titles(groups: dict[str, list[Decimal]], limit: int) -> list[BracketTitle]:
    return [
        BracketTitle(title=title, count=len(groups[title]), avg_pay=to_cents(mean(groups[title])))
        for title in rank_titles(groups)[:limit]
    ]


def title_stats(title: str, pays: Sequence[Decimal]) -> TitleStats:
    ordered = sorted(pays)
    return TitleStats(
        title=title,
        category=categorize_title(title),
        count=len(ordered),
        total_pay=to_cents(sum(ordered, ZERO)),
        avg_pay=to_cents(mean(ordered)),
        median_pay=to_cents(statistics.median(ordered)),
        min_pay=to_cents(ordered[0]),
        max_pay=to_cents(ordered[-1]),
        std_dev=to_cents(pstdev(ordered)),
    )


def analyze_titles(
    records: Sequence[WageRecord],
    partition: Partition,
    settings: AggregationSettings | None = None,
) -> TitleAnalysis:
    """
    Rank the job titles of a partition.

    Args:
        records: All records of the partition
        partition: Partition being analyzed
        settings: Aggregation settings (top N, redaction markers)

    Returns:
        TitleAnalysis with the distinct title count and the top N titles
    """
    settings = settings or AggregationSettings()
    groups = group_by_title(records, settings.redacted_titles)

    return TitleAnalysis(
        location=partition.location,
        year=partition.year,
        unique_titles=len(groups),
        top_titles=[
            title_stats(title, groups[title])
            for title in rank_titles(groups)[:settings.top_titles]
        ],
    )
