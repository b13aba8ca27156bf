"""Lenient date parsing and date-range helpers."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Optional, Tuple

_YMD = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$")
_DMY = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")
_DM = re.compile(r"^(\d{1,2})[-/](\d{1,2})$")
_YM = re.compile(r"^(\d{4})[-/](\d{1,2})$")
_MY = re.compile(r"^(\d{1,2})[-/](\d{4})$")
_YMD_HM = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[ T](\d{2}):(\d{2})(?::(\d{2}))?(?:\.(\d{1,6}))?$"
)


def _make_date(year: int, month: int, day: int) -> Optional[datetime]:
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def try_parse_date(value: Any) -> Optional[datetime]:
    """Parse a day without time: ``YYYY-MM-DD``, ``DD/MM/YYYY`` or ``DD/MM`` (current year)."""
    if not value:
        return None
    text = str(value).strip()

    m = _YMD.match(text)
    if m:
        return _make_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _DMY.match(text)
    if m:
        return _make_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))

    m = _DM.match(text)
    if m:
        return _make_date(datetime.now().year, int(m.group(2)), int(m.group(1)))

    return None


def try_parse_month(value: Any) -> Optional[Tuple[datetime, datetime]]:
    """Parse ``YYYY-MM`` or ``MM/YYYY`` into the month's [start, end] range."""
    if not value:
        return None
    text = str(value).strip()

    m = _YM.match(text)
    if m:
        year, month = int(m.group(1)), int(m.group(2))
    else:
        m = _MY.match(text)
        if not m:
            return None
        month, year = int(m.group(1)), int(m.group(2))

    if not 1 <= month <= 12:
        return None
    return month_range(datetime(year, month, 1))


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp from the formats clients actually send.

    Accepts ISO 8601 (with or without zone, ``Z`` included), a
    ``YYYY-MM-DD HH:MM[:SS]`` local time, or any day format understood
    by :func:`try_parse_date`. Returns None when nothing matches.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)

    text = str(value).strip()
    m = _YMD_HM.match(text)
    if m:
        year, month, day, hour, minute = (int(m.group(i)) for i in range(1, 6))
        second = int(m.group(6) or 0)
        micro = int((m.group(7) or "0").ljust(6, "0"))
        try:
            return datetime(year, month, day, hour, minute, second, micro)
        except ValueError:
            return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00").replace("z", "+00:00"))
    except ValueError:
        pass

    return try_parse_date(text)


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max)


def month_range(value: datetime) -> Tuple[datetime, datetime]:
    first = datetime(value.year, value.month, 1)
    if value.month == 12:
        next_first = datetime(value.year + 1, 1, 1)
    else:
        next_first = datetime(value.year, value.month + 1, 1)
    return first, end_of_day(next_first - timedelta(days=1))


def get_range(date_value: Any, period: Optional[str]) -> Tuple[datetime, datetime]:
    """
    Range around a date for listing filters.

    ``day`` and ``week`` (Monday start) are supported; anything else is
    treated as ``month``. A missing or unparsable date means today.
    """
    base = parse_datetime(date_value) or datetime.now()
    if base.tzinfo is not None:
        base = base.replace(tzinfo=None)

    if period == "day":
        return start_of_day(base), end_of_day(base)
    if period == "week":
        monday = start_of_day(base) - timedelta(days=base.weekday())
        return monday, end_of_day(monday + timedelta(days=6))
    return month_range(base)
