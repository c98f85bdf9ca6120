"""
TitleAnalysis model: job-title frequency ranking for one partition.
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field

from .partition import Partition


class TitleStats(BaseModel):
    """
    Pay statistics for one exact job title.

    Attributes:
        title: Job title, exactly as stored
        category: Coarse title category (Academic, Medical, ...)
        count: Employees holding the title
        total_pay: Sum of grosspay
        avg_pay: Mean grosspay
        median_pay: Median grosspay
        min_pay: Smallest grosspay
        max_pay: Largest grosspay
        std_dev: Population standard deviation of grosspay
    """

    title: str
    category: str = "Other"
    count: int = Field(..., ge=1)
    total_pay: Decimal
    avg_pay: Decimal
    median_pay: Decimal
    min_pay: Decimal
    max_pay: Decimal
    std_dev: Decimal


class TitleAnalysis(BaseModel):
    """
    Title frequency analysis for one (location, year) partition.

    top_titles is ordered by count descending, ties broken by title
    ascending.

    Attributes:
        location: Partition location
        year: Partition year
        generated_at: When the analysis was computed
        unique_titles: Number of distinct titles
        top_titles: Top N titles by frequency
    """

    location: str
    year: int
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    unique_titles: int = Field(default=0, ge=0)
    top_titles: list[TitleStats] = Field(default_factory=list)

    @property
    def partition(self) -> Partition:
        return Partition(location=self.location, year=self.year)
