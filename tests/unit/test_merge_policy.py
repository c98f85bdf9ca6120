"""
Unit tests for the overwrite merge policy.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from wage_pipeline.warehouse.merge_policy import (
    MUTABLE_FIELDS,
    conflict_update_clause,
    overwrite_merge,
)


@pytest.mark.unit
class TestOverwriteMerge:
    """Tests for last-write-wins merging"""

    def test_incoming_overwrites_every_mutable_field(self, make_record):
        existing = make_record(1, grosspay="10", title="CLERK", firstname="A", basepay=Decimal("10"))
        incoming = make_record(
            1,
            grosspay="20",
            title="MANAGER",
            firstname="B",
            scraped_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )

        merged = overwrite_merge(existing, incoming)

        for field in MUTABLE_FIELDS:
            assert getattr(merged, field) == getattr(incoming, field)
        assert merged.basepay == Decimal("0")
        assert merged.key == existing.key

    def test_key_mismatch_rejected(self, make_record):
        with pytest.raises(ValueError):
            overwrite_merge(make_record(1), make_record(2))

    def test_sql_clause_lists_every_mutable_field(self):
        clause = conflict_update_clause()

        for field in MUTABLE_FIELDS:
            assert f"{field} = EXCLUDED.{field}" in clause
        assert "uploaded_at = NOW()" in clause
        assert "employee_id" not in clause
