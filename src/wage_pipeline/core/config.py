"""
Pipeline configuration management.

Loads tunables (chunk size, percentile ranks, pay brackets, title limits)
from a YAML file, with environment variable overrides for the values
operators change most often.
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError

DEFAULT_CONFIG_PATH = "config/pipeline.yaml"

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_TOP_TITLES = 20
DEFAULT_BRACKET_TOP_TITLES = 10
DEFAULT_PERCENTILES = [10, 25, 50, 75, 90, 95, 99]
DEFAULT_REDACTED_TITLES = ["*****"]


class BracketDefinition(BaseModel):
    """
    A pay bracket boundary pair.

    Attributes:
        range: Display label
        min_value: Inclusive lower bound
        max_value: Exclusive upper bound, None for the open top bracket
    """

    range: str = Field(..., min_length=1)
    min_value: Decimal = Field(..., ge=0)
    max_value: Decimal | None = None

    @model_validator(mode="after")
    def check_bounds(self) -> "BracketDefinition":
        if self.max_value is not None and self.max_value <= self.min_value:
            raise ValueError(
                f"Bracket '{self.range}' upper bound must exceed its lower bound"
            )
        return self


def default_brackets() -> list[BracketDefinition]:
    """Standard dollar bands used when no brackets are configured."""
    bands = [
        ("0-25k", 0, 25_000),
        ("25k-50k", 25_000, 50_000),
        ("50k-75k", 50_000, 75_000),
        ("75k-100k", 75_000, 100_000),
        ("100k-150k", 100_000, 150_000),
        ("150k-200k", 150_000, 200_000),
        ("200k-300k", 200_000, 300_000),
        ("300k-500k", 300_000, 500_000),
        ("500k-1M", 500_000, 1_000_000),
        ("1M+", 1_000_000, None),
    ]
    return [
        BracketDefinition(
            range=label,
            min_value=Decimal(low),
            max_value=Decimal(high) if high is not None else None,
        )
        for label, low, high in bands
    ]


class IngestionSettings(BaseModel):
    """Tunables of the batch ingestion engine."""

    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1, le=100_000)


class AggregationSettings(BaseModel):
    """Tunables of the aggregation engine."""

    top_titles: int = Field(default=DEFAULT_TOP_TITLES, ge=1)
    bracket_top_titles: int = Field(default=DEFAULT_BRACKET_TOP_TITLES, ge=0)
    percentiles: list[int] = Field(default_factory=lambda: list(DEFAULT_PERCENTILES))
    brackets: list[BracketDefinition] = Field(default_factory=default_brackets)
    redacted_titles: list[str] = Field(default_factory=lambda: list(DEFAULT_REDACTED_TITLES))

    @field_validator("percentiles")
    @classmethod
    def check_percentiles(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("At least one percentile rank is required")
        for rank in v:
            if rank < 0 or rank > 100:
                raise ValueError(f"Percentile rank must be between 0 and 100, got {rank}")
        return sorted(set(v))

    @field_validator("brackets")
    @classmethod
    def check_brackets(cls, v: list[BracketDefinition]) -> list[BracketDefinition]:
        if not v:
            raise ValueError("At least one pay bracket is required")
        for lower, upper in zip(v, v[1:]):
            if lower.max_value is None or lower.max_value != upper.min_value:
                raise ValueError(
                    f"Brackets must be ascending and contiguous: "
                    f"'{lower.range}' does not end where '{upper.range}' starts"
                )
        return v


class PipelineSettings(BaseModel):
    """Complete pipeline configuration."""

    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)


class SettingsLoader:
    """
    Loads pipeline settings from a YAML configuration file.

    Expected YAML format:
    ```yaml
    ingestion:
      chunk_size: 1000

    aggregation:
      top_titles: 20
      bracket_top_titles: 10
      percentiles: [10, 25, 50, 75, 90, 95, 99]
      redacted_titles: ["*****"]
      brackets:
        - range: "0-25k"
          min_value: 0
          max_value: 25000
        - range: "25k+"
          min_value: 25000
    ```
    """

    ENV_OVERRIDES = {
        "WAGE_CHUNK_SIZE": ("ingestion", "chunk_size"),
        "WAGE_TOP_TITLES": ("aggregation", "top_titles"),
    }

    def __init__(self, config_path: str | Path | None = None):
        """
        Initialize the settings loader.

        Args:
            config_path: Path to the YAML file (defaults to env var
                WAGE_CONFIG or config/pipeline.yaml)
        """
        self.config_path = Path(config_path or os.getenv("WAGE_CONFIG", DEFAULT_CONFIG_PATH))

    def load(self) -> PipelineSettings:
        """
        Load settings, falling back to defaults when the file is absent.

        Returns:
            Validated PipelineSettings

        Raises:
            ConfigurationError: If the file or an override is invalid
        """
        raw: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path) as f:
                    raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

            if not isinstance(raw, dict):
                raise ConfigurationError(
                    f"Configuration file {self.config_path} must contain a mapping"
                )

        self._apply_env_overrides(raw)

        try:
            return PipelineSettings.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid pipeline configuration: {e}") from e

    def _apply_env_overrides(self, raw: dict[str, Any]) -> None:
        for env_var, (section, key) in self.ENV_OVERRIDES.items():
            value = os.getenv(env_var)
            if value is None:
                continue
            try:
                parsed = int(value)
            except ValueError as e:
                raise ConfigurationError(f"{env_var} must be an integer, got {value!r}") from e
            section_values = raw.setdefault(section, {}) or {}
            section_values[key] = parsed
            raw[section] = section_values


def load_settings(config_path: str | Path | None = None) -> PipelineSettings:
    """Load pipeline settings from YAML and the environment."""
    return SettingsLoader(config_path).load()
