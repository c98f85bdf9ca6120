"""
WagePyramid model: pay-bracket distribution for one partition.
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field

from .partition import Partition


class BracketTitle(BaseModel):
    """Frequency of one job title inside a pay bracket."""

    title: str
    count: int = Field(..., ge=1)
    avg_pay: Decimal


class WageBracket(BaseModel):
    """
    One pay bracket of a pyramid.

    Bounds are [min_value, max_value); max_value is None for the open-ended
    top bracket.

    Attributes:
        range: Display label (e.g. "50k-75k")
        min_value: Inclusive lower bound
        max_value: Exclusive upper bound, None when unbounded
        count: Employees in the bracket
        percentage: Share of the partition's employees (0-100)
        total_pay: Cumulative grosspay of the bracket
        avg_pay: Mean grosspay of the bracket
        median_pay: Median grosspay of the bracket
        top_titles: Most frequent titles in the bracket
    """

    range: str
    min_value: Decimal
    max_value: Decimal | None = None
    count: int = Field(default=0, ge=0)
    percentage: Decimal = Decimal("0.00")
    total_pay: Decimal = Decimal("0.00")
    avg_pay: Decimal = Decimal("0.00")
    median_pay: Decimal = Decimal("0.00")
    top_titles: list[BracketTitle] = Field(default_factory=list)


class WagePyramid(BaseModel):
    """
    Pay-bracket pyramid for one (location, year) partition.

    Brackets are non-overlapping and emitted in ascending order. Every
    record of the partition is counted in exactly one bracket.

    Attributes:
        location: Partition location
        year: Partition year
        generated_at: When the pyramid was computed
        total_employees: Records in the partition
        total_pay: Sum of grosspay
        brackets: Non-empty brackets, ascending
    """

    location: str
    year: int
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    total_employees: int = Field(default=0, ge=0)
    total_pay: Decimal = Decimal("0.00")
    brackets: list[WageBracket] = Field(default_factory=list)

    @property
    def partition(self) -> Partition:
        return Partition(location=self.location, year=self.year)
