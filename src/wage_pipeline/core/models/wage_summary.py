"""
WageSummary model: precomputed statistics for one partition.
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field

from .partition import Partition

ZERO = Decimal("0.00")


class PayComponents(BaseModel):
    """
    Totals and averages of the three pay components.

    Attributes:
        total_base: Sum of basepay
        total_overtime: Sum of overtimepay
        total_adjustments: Sum of adjustpay
        avg_base: Mean basepay
        avg_overtime: Mean overtimepay
        avg_adjustments: Mean adjustpay
    """

    total_base: Decimal = ZERO
    total_overtime: Decimal = ZERO
    total_adjustments: Decimal = ZERO
    avg_base: Decimal = ZERO
    avg_overtime: Decimal = ZERO
    avg_adjustments: Decimal = ZERO


class WageSummary(BaseModel):
    """
    Statistical summary of grosspay for one (location, year) partition.

    One row per partition, fully replaced on each regeneration. For an empty
    partition every monetary field is zero and every percentile is None.

    Attributes:
        location: Partition location
        year: Partition year
        generated_at: When the summary was computed
        employee_count: Number of records in the partition
        total_gross_pay: Sum of grosspay
        avg_gross_pay: Mean grosspay
        median_gross_pay: Exact median grosspay
        std_dev: Population standard deviation of grosspay
        min_pay: Smallest grosspay
        max_pay: Largest grosspay
        gini_coefficient: Inequality of grosspay (0 = equal)
        percentiles: Percentile key ("p10", "p25", ...) to grosspay value
        pay_components: Base/overtime/adjustment totals and averages
    """

    location: str
    year: int
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    employee_count: int = Field(default=0, ge=0)
    total_gross_pay: Decimal = ZERO
    avg_gross_pay: Decimal = ZERO
    median_gross_pay: Decimal = ZERO
    std_dev: Decimal = ZERO
    min_pay: Decimal = ZERO
    max_pay: Decimal = ZERO
    gini_coefficient: Decimal = Decimal("0.0000")
    percentiles: dict[str, Decimal | None] = Field(default_factory=dict)
    pay_components: PayComponents = Field(default_factory=PayComponents)

    class Config:
        json_schema_extra = {
            "example": {
                "location": "berkeley",
                "year": 2023,
                "employee_count": 4,
                "total_gross_pay": "100.00",
                "avg_gross_pay": "25.00",
                "median_gross_pay": "25.00",
                "std_dev": "11.18",
                "min_pay": "10.00",
                "max_pay": "40.00",
                "percentiles": {"p10": "13.00", "p50": "25.00", "p90": "37.00"}
            }
        }

    @property
    def partition(self) -> Partition:
        return Partition(location=self.location, year=self.year)
