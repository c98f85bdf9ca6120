"""
Field coercion for untrusted wage-file values.

Every function here is total: unparseable input returns a default instead of
raising. Callers receive the RecordCoercionDefault that explains the default,
or None when the value was used as given.
"""

import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from wage_pipeline.core.errors import RecordCoercionDefault

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

# Largest amount a DECIMAL(12, 2) column holds
MAX_PAY = Decimal("9999999999.99")

# Placeholders sources use for missing or redacted amounts
_EMPTY_MARKERS = {"", "N/A", "NA", "-", "*****"}

_CURRENCY_NOISE = re.compile(r"[,$\s]")


def to_cents(value: Decimal) -> Decimal:
    """Quantize a Decimal to two places, rounding half up."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_pay(value: Any, field_name: str = "pay") -> tuple[Decimal, RecordCoercionDefault | None]:
    """
    Parse a pay amount into a non-negative Decimal.

    Thousands separators, currency signs and whitespace are stripped from
    strings before conversion ("1,234.50" -> 1234.50).

    Args:
        value: Raw value from the payload (str, int, float or None)
        field_name: Field name used in the coercion report

    Returns:
        Tuple of (amount, coercion default or None)

    Examples:
        >>> parse_pay("1,234.50")[0]
        Decimal('1234.50')
        >>> parse_pay("N/A")[0]
        Decimal('0.00')
    """
    if value is None:
        return ZERO, None

    if isinstance(value, bool):
        return ZERO, RecordCoercionDefault(field_name, value, ZERO)

    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    elif isinstance(value, str):
        text = _CURRENCY_NOISE.sub("", value)
        if text.upper() in _EMPTY_MARKERS:
            # Known placeholders are not worth a warning
            return ZERO, None
    else:
        return ZERO, RecordCoercionDefault(field_name, value, ZERO)

    try:
        amount = Decimal(text)
        if not amount.is_finite() or amount < 0 or amount > MAX_PAY:
            return ZERO, RecordCoercionDefault(field_name, value, ZERO)
        amount = to_cents(amount)
    except InvalidOperation:
        return ZERO, RecordCoercionDefault(field_name, value, ZERO)

    return amount, None


def parse_employee_id(value: Any) -> tuple[int | None, RecordCoercionDefault | None]:
    """
    Parse an employee identifier.

    Integers, integral floats and digit strings are accepted. Anything else
    yields None, which marks the record as anonymized.

    Args:
        value: Raw identifier

    Returns:
        Tuple of (employee id or None, coercion default or None)
    """
    if value is None:
        return None, None

    if isinstance(value, bool):
        return None, RecordCoercionDefault("employee_id", value, None)

    if isinstance(value, int):
        return value, None

    if isinstance(value, float):
        if value.is_integer():
            return int(value), None
        return None, RecordCoercionDefault("employee_id", value, None)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None, None
        if text.isdigit():
            return int(text), None

    return None, RecordCoercionDefault("employee_id", value, None)


def parse_text(value: Any, field_name: str = "text") -> tuple[str, RecordCoercionDefault | None]:
    """
    Coerce a name or title field to a string.

    Missing values become "". Scalars are stringified; containers are not
    meaningful text and default to "". Case is preserved.
    """
    if value is None:
        return "", None

    if isinstance(value, str):
        return value.strip(), None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value), None

    return "", RecordCoercionDefault(field_name, value, "")


def parse_year(value: Any) -> int | None:
    """Parse a year from an int or a digit string; None when impossible."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_timestamp(
    value: Any,
    fallback: datetime,
    field_name: str = "scraped_at",
) -> tuple[datetime, RecordCoercionDefault | None]:
    """
    Parse an ISO-8601 / RFC-3339 timestamp.

    Naive timestamps are taken as UTC. Missing values return the fallback
    silently; unparseable values return it with a coercion report.

    Args:
        value: Raw timestamp (str or datetime)
        fallback: Value used when parsing is impossible
        field_name: Field name used in the coercion report

    Returns:
        Tuple of (timestamp, coercion default or None)
    """
    if value is None or value == "":
        return fallback, None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return fallback, RecordCoercionDefault(field_name, value, fallback)
    else:
        return fallback, RecordCoercionDefault(field_name, value, fallback)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed, None
