"""
Shared field types for backend records.

The backend stores dates as ISO strings, sometimes date-only and sometimes
with a time and offset. Records with a broken date must still load, so
timestamp fields are lenient: anything unparseable becomes None.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a backend timestamp into an aware UTC datetime.

    Accepts datetimes, dates and ISO 8601 strings (a trailing 'Z' is
    allowed). Date-only values are midnight UTC. Naive values are read
    as UTC. Returns None for anything else.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def day_key(value: Optional[datetime]) -> Optional[str]:
    """ISO day string (YYYY-MM-DD) of a UTC timestamp."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).date().isoformat()


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a number or numeric string to Decimal, None if it isn't one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def _lenient_timestamp(value: Any) -> Optional[datetime]:
    return parse_timestamp(value)


LenientTimestamp = Annotated[Optional[datetime], BeforeValidator(_lenient_timestamp)]
