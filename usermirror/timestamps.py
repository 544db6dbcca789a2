"""Helpers for normalising directory timestamps to absolute UTC instants."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from .models import RawTimestamp

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_text(text: str) -> Optional[datetime]:
    cleaned = text.strip()
    if not cleaned:
        return None

    iso_candidate = cleaned[:-1] + "+00:00" if cleaned.endswith(("Z", "z")) else cleaned
    try:
        return datetime.fromisoformat(iso_candidate)
    except ValueError:
        pass

    # RFC 1123 strings such as "Tue, 02 Jan 2024 10:00:00 GMT"
    try:
        parsed = parsedate_to_datetime(cleaned)
    except (TypeError, ValueError, IndexError):
        return None
    return parsed


def parse_timestamp(value: RawTimestamp) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime, or ``None`` if it cannot be parsed.

    Integers and floats are interpreted as milliseconds since the Unix epoch,
    which is how the Firebase Admin SDK reports account metadata.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        try:
            return _EPOCH + timedelta(milliseconds=value)
        except (OverflowError, ValueError):
            return None
    if isinstance(value, str):
        parsed = _parse_text(value)
        return _as_utc(parsed) if parsed is not None else None
    return None


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""

    utc = _as_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc.microsecond // 1000:03d}Z"


def normalize_timestamp(value: RawTimestamp) -> Optional[str]:
    """Canonical text form for storage.

    Values that fail to parse are kept as their raw text so that a single
    malformed timestamp never aborts a sync.
    """

    if value is None:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        return str(value)
    return format_timestamp(parsed)


def utc_day(value: RawTimestamp) -> str:
    """Return the UTC calendar day of ``value`` as ``YYYY-MM-DD`` or ``""``."""

    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    return parsed.date().isoformat()


__all__ = ["format_timestamp", "normalize_timestamp", "parse_timestamp", "utc_day"]
