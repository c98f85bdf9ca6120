"""
Merge policy applied when an incoming record matches a stored one.

Last write wins: the incoming record overwrites every mutable field.
The SQL upsert renders the same field list as ON CONFLICT ... DO UPDATE.
"""

from wage_pipeline.core.models import WageRecord

IDENTITY_FIELDS = ("location", "year", "employee_id")

MUTABLE_FIELDS = (
    "firstname",
    "lastname",
    "title",
    "basepay",
    "overtimepay",
    "adjustpay",
    "grosspay",
    "scraped_at",
)


def overwrite_merge(existing: WageRecord, incoming: WageRecord) -> WageRecord:
    """
    Merge an incoming record into a stored one.

    Args:
        existing: Stored record
        incoming: Record being upserted with the same key

    Returns:
        Stored identity with every mutable field taken from incoming

    Raises:
        ValueError: If the records do not share an upsert key
    """
    if existing.key != incoming.key:
        raise ValueError(f"Cannot merge records with different keys: {existing.key} != {incoming.key}")

    return existing.model_copy(
        update={field: getattr(incoming, field) for field in MUTABLE_FIELDS}
    )


def conflict_update_clause() -> str:
    """SET clause of the wage upsert, one assignment per mutable field."""
    assignments = [f"{field} = EXCLUDED.{field}" for field in MUTABLE_FIELDS]
    assignments.append("uploaded_at = NOW()")
    return ",\n                ".join(assignments)
