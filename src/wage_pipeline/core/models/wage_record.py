"""
WageRecord model representing one employee's compensation for one partition.
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field

from .partition import Partition


class WageRecord(BaseModel):
    """
    One employee's compensation for one (location, year) partition.

    Identity is (location, year, employee_id). A record without an
    employee_id is anonymized and never collides with another record.

    grosspay is the authoritative aggregation field. It is stored as given
    and never recomputed from the pay components.

    Attributes:
        location: Partition location
        year: Partition year
        employee_id: Source employee identifier, None for anonymized rows
        firstname: Employee first name ("" when absent)
        lastname: Employee last name ("" when absent)
        title: Job title ("" when absent)
        basepay: Regular pay
        overtimepay: Overtime pay
        adjustpay: Adjustments and other pay
        grosspay: Total pay as reported by the source
        scraped_at: When the source data was captured
    """

    location: str = Field(..., min_length=1, max_length=50)
    year: int
    employee_id: int | None = None
    firstname: str = ""
    lastname: str = ""
    title: str = ""
    basepay: Decimal = Field(default=Decimal("0.00"), ge=0)
    overtimepay: Decimal = Field(default=Decimal("0.00"), ge=0)
    adjustpay: Decimal = Field(default=Decimal("0.00"), ge=0)
    grosspay: Decimal = Field(default=Decimal("0.00"), ge=0)
    scraped_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        json_schema_extra = {
            "example": {
                "location": "berkeley",
                "year": 2023,
                "employee_id": 104233,
                "firstname": "JANE",
                "lastname": "DOE",
                "title": "PROF-AY",
                "basepay": "152300.00",
                "overtimepay": "0.00",
                "adjustpay": "1200.50",
                "grosspay": "153500.50",
                "scraped_at": "2024-03-01T12:00:00Z"
            }
        }

    @property
    def partition(self) -> Partition:
        return Partition(location=self.location, year=self.year)

    @property
    def key(self) -> tuple[str, int, int | None]:
        """Upsert key (location, year, employee_id)."""
        return (self.location, self.year, self.employee_id)

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()
