"""Date normalization.

Every parsed value becomes a timezone-aware UTC ``datetime`` (the canonical
instant used for comparison, sorting and serialization), or None.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from dateutil.parser import isoparse

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# 2000-01-01T00:00:00Z in epoch milliseconds.
MIN_PLAUSIBLE_TIMESTAMP_MS = 946684800000

EXPLICIT_DATE_FORMATS = [
    (re.compile(r'^\d{4}-\d{2}-\d{2}$'), '%Y-%m-%d'),
    (re.compile(r'^\d{2}/\d{2}/\d{4}$'), '%m/%d/%Y'),
    (re.compile(r'^\d{2}-\d{2}-\d{4}$'), '%m-%d-%Y'),
]

_INTEGER_STRING = re.compile(r'^[+-]?\d+$')
_DATE_SHAPED_STRING = re.compile(r'^\d{4}-\d{2}-\d{2}|^\d{2}/\d{2}/\d{4}')


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def from_epoch_millis(millis: float) -> Optional[datetime]:
    if isinstance(millis, float) and (math.isnan(millis) or math.isinf(millis)):
        return None
    try:
        return EPOCH + timedelta(milliseconds=millis)
    except (OverflowError, ValueError):
        return None


def _parse_string(text: str) -> Optional[datetime]:
    text = text.strip()
    if not text:
        return None

    is_integer = bool(_INTEGER_STRING.match(text))

    # Long digit runs are timestamps, not basic-format ISO dates.
    if not is_integer or len(text.lstrip('+-')) <= 4:
        try:
            return _as_utc(isoparse(text))
        except (ValueError, OverflowError):
            pass

    if is_integer:
        parsed = from_epoch_millis(int(text))
        if parsed is not None:
            return parsed

    for pattern, fmt in EXPLICIT_DATE_FORMATS:
        if pattern.match(text):
            try:
                return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
            except ValueError:
                continue

    return None


def parse_date(value: Any) -> Optional[datetime]:
    """Convert a date-like value to a UTC datetime, or None.

    Accepted inputs, first success wins:
    - datetime / date objects (naive values are taken as UTC)
    - numbers, as epoch milliseconds
    - strings: ISO-8601, integer epoch milliseconds, then YYYY-MM-DD,
      MM/DD/YYYY and MM-DD-YYYY

    Falsy input (None, '', 0, False) is rejected, so a zero default in a
    numeric field never turns into 1970-01-01.
    """
    if not value:
        return None

    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return from_epoch_millis(value)

    if isinstance(value, str):
        return _parse_string(value)

    return None


def is_valid_date_format(text: str) -> bool:
    return parse_date(text) is not None


def looks_like_date(value: Any) -> bool:
    """Stricter date-shape test used by field heuristics.

    Numbers count only as epoch milliseconds after 2000-01-01, and strings only
    when they start with YYYY-MM-DD or MM/DD/YYYY.
    """
    if not value:
        return False
    if isinstance(value, (datetime, date)):
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value > MIN_PLAUSIBLE_TIMESTAMP_MS and parse_date(value) is not None
    if isinstance(value, str):
        return bool(_DATE_SHAPED_STRING.match(value.strip())) and parse_date(value) is not None
    return False


def to_iso_string(value: datetime) -> str:
    """Render a datetime as 'YYYY-MM-DDTHH:MM:SS.mmmZ'."""
    value = _as_utc(value)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{value.microsecond // 1000:03d}Z"
