"""
Record normalizer: raw wage payload -> stream of validated WageRecords.

Flow: parse JSON -> validate payload shape -> coerce each record lazily
"""

import json
from collections.abc import Iterator, Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from wage_pipeline.core.errors import MalformedPayload, RecordCoercionDefault
from wage_pipeline.core.models import Partition, WageRecord
from wage_pipeline.observability.logger import get_logger
from wage_pipeline.observability.metrics import record_coercion_default

from .coercion import (
    parse_employee_id,
    parse_pay,
    parse_text,
    parse_timestamp,
    parse_year,
)

logger = get_logger(__name__)

PAY_FIELDS = ("basepay", "overtimepay", "adjustpay", "grosspay")
TEXT_FIELDS = ("firstname", "lastname", "title")


def parse_payload(raw: str | bytes, source: str | None = None) -> dict[str, Any]:
    """
    Decode a wage file into a payload mapping.

    Args:
        raw: JSON document
        source: File name or other origin, used in error messages

    Returns:
        Decoded payload

    Raises:
        MalformedPayload: If the document is not JSON or not a JSON object
    """
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedPayload(f"not valid JSON: {e}", source=source) from e

    if not isinstance(payload, dict):
        raise MalformedPayload(
            f"expected a JSON object, got {type(payload).__name__}", source=source
        )
    return payload


class RecordNormalizer:
    """
    Turns a wage payload into validated WageRecords.

    Payload-level problems (no records sequence, no resolvable partition)
    are fatal and raised before any record is produced. Field-level
    problems default the field and are logged.
    """

    def __init__(self, source: str | None = None):
        """
        Initialize normalizer.

        Args:
            source: Origin of the payload, used in log and error messages
        """
        self.source = source
        self.coercion_defaults = 0

    def resolve_partition(
        self,
        payload: Any,
        location: str | None = None,
        year: int | None = None,
    ) -> Partition:
        """
        Validate the payload shape and determine its partition.

        Payload-level location/year win; the arguments are fallbacks for
        payloads that omit them.

        Raises:
            MalformedPayload: If the payload is unusable as a whole
        """
        if not isinstance(payload, Mapping):
            raise MalformedPayload(
                f"expected a mapping payload, got {type(payload).__name__}", source=self.source
            )

        records = payload.get("records")
        if records is None:
            raise MalformedPayload("payload has no 'records' sequence", source=self.source)
        if not isinstance(records, list):
            raise MalformedPayload(
                f"'records' must be a sequence, got {type(records).__name__}", source=self.source
            )

        resolved_location, _ = parse_text(payload.get("location"), "location")
        resolved_location = resolved_location or (location or "")
        resolved_year = parse_year(payload.get("year"))
        if resolved_year is None:
            resolved_year = year

        if not resolved_location or resolved_year is None:
            raise MalformedPayload(
                "payload does not identify its partition (location and year are required)",
                source=self.source,
            )

        try:
            return Partition(location=resolved_location, year=resolved_year)
        except ValidationError as e:
            raise MalformedPayload(f"invalid partition: {e}", source=self.source) from e

    def normalize(
        self,
        payload: Any,
        location: str | None = None,
        year: int | None = None,
        ingested_at: datetime | None = None,
    ) -> Iterator[WageRecord]:
        """
        Normalize a payload into a lazy stream of WageRecords.

        The payload shape is validated immediately; records are coerced as
        the stream is consumed.

        Args:
            payload: Decoded wage payload
            location: Fallback location when the payload has none
            year: Fallback year when the payload has none
            ingested_at: Default scrape timestamp (defaults to now)

        Returns:
            Iterator of WageRecord

        Raises:
            MalformedPayload: If the payload is unusable as a whole
        """
        partition = self.resolve_partition(payload, location, year)
        ingested_at = ingested_at or datetime.now(timezone.utc)
        scraped_at, problem = parse_timestamp(payload.get("scraped_at"), ingested_at)
        self._report(problem, partition, index=None)

        return self._iter_records(payload["records"], partition, scraped_at)

    def _iter_records(
        self,
        records: list[Any],
        partition: Partition,
        scraped_at: datetime,
    ) -> Iterator[WageRecord]:
        for index, raw in enumerate(records):
            if not isinstance(raw, Mapping):
                raise MalformedPayload(
                    f"record {index} is {type(raw).__name__}, expected an object",
                    source=self.source,
                )
            yield self.normalize_record(raw, partition, scraped_at, index=index)

    def normalize_record(
        self,
        raw: Mapping[str, Any],
        partition: Partition,
        scraped_at: datetime,
        index: int | None = None,
    ) -> WageRecord:
        """
        Coerce one raw record.

        Record-level location, year and scraped_at override the payload's.

        Args:
            raw: Raw record mapping
            partition: Payload partition
            scraped_at: Payload scrape timestamp
            index: Position in the payload, for log messages

        Returns:
            WageRecord
        """
        problems: list[RecordCoercionDefault | None] = []

        location, problem = parse_text(raw.get("location"), "location")
        problems.append(problem)
        year = parse_year(raw.get("year"))
        if raw.get("year") is not None and year is None:
            problems.append(RecordCoercionDefault("year", raw.get("year"), partition.year))

        raw_id = raw.get("employee_id")
        if raw_id is None:
            raw_id = raw.get("id")
        employee_id, problem = parse_employee_id(raw_id)
        problems.append(problem)

        fields: dict[str, Any] = {}
        for name in TEXT_FIELDS:
            fields[name], problem = parse_text(raw.get(name), name)
            problems.append(problem)
        for name in PAY_FIELDS:
            fields[name], problem = parse_pay(raw.get(name), name)
            problems.append(problem)

        record_scraped_at, problem = parse_timestamp(raw.get("scraped_at"), scraped_at)
        problems.append(problem)

        for problem in problems:
            self._report(problem, partition, index)

        try:
            return WageRecord(
                location=location or partition.location,
                year=year if year is not None else partition.year,
                employee_id=employee_id,
                scraped_at=record_scraped_at,
                **fields,
            )
        except ValidationError as e:
            raise MalformedPayload(f"record {index} is invalid: {e}", source=self.source) from e

    def _report(
        self,
        problem: RecordCoercionDefault | None,
        partition: Partition,
        index: int | None,
    ) -> None:
        if problem is None:
            return
        self.coercion_defaults += 1
        record_coercion_default(problem.field_name)
        logger.warning(
            f"Defaulted field {problem.field_name} in {partition}",
            extra={
                "partition": str(partition),
                "record_index": index,
                "field_name": problem.field_name,
                "raw_value": repr(problem.raw_value),
                "source": self.source,
            },
        )
