"""Calendar-date normalisation shared by the store adapter and request parsing."""

from __future__ import annotations

import math
from datetime import date, datetime
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser


def to_calendar_date(value: date | datetime | str, tz_name: str = "UTC") -> date:
    """Reduce *value* to a calendar date in the reference timezone.

    Aware timestamps are converted to *tz_name* before the time of day is
    dropped; naive timestamps are assumed to already be in it.
    Raises ``ValueError`` for strings that are not dates.
    """
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty date string")
        value = date_parser.isoparse(text)

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(tz_name))
        return value.date()

    if isinstance(value, date):
        return value

    raise ValueError(f"unsupported date value: {value!r}")


def today_in(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3, not 2)."""
    return math.floor(value + 0.5)
