"""Timezone-aware timestamp utilities."""

from datetime import datetime, timezone
from typing import Any

PROVIDER_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)


def utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime.

    Use instead of deprecated ``datetime.utcnow()`` which returns naive datetimes.
    """
    return datetime.now(timezone.utc)


def parse_provider_datetime(value: Any) -> datetime | None:
    """Parse a Korastats date/datetime string as UTC, or return None.

    Korastats sends ``"2025-05-29 21:00:00"`` for kickoffs and plain
    ``"2025-08-28"`` for tournament boundaries.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    for fmt in PROVIDER_DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def isoformat(value: datetime | None) -> str | None:
    """Serialize a datetime for storage inside a JSON document."""
    if value is None:
        return None
    return value.isoformat()
