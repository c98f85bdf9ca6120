"""
Partition key shared by wage records, upload progress and artifacts.
"""

from pydantic import BaseModel, Field


class Partition(BaseModel):
    """
    One (location, year) slice of the wage store.

    Attributes:
        location: Campus or location name (e.g. "ucla")
        year: Calendar year of the wage data
    """

    location: str = Field(..., min_length=1, max_length=50)
    year: int = Field(..., ge=1900, le=2200)

    class Config:
        frozen = True
        json_schema_extra = {"example": {"location": "berkeley", "year": 2023}}

    def __str__(self) -> str:
        return f"{self.location}/{self.year}"
