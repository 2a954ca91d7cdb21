# gantt_core/date_utils.py

from __future__ import annotations
from typing import Any, Optional
from datetime import datetime, date, timedelta, timezone
import math
import re

from dateutil import parser as date_parser


_YMD_DASH = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_YMD_SLASH = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$")
_MDY_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_MARKER = re.compile(r"[TtZz]|[+-]\d{2}:?\d{2}$")

# A free-form string is parsed against both defaults; it names a full
# calendar date only when the two results agree.
_FALLBACK_DEFAULT = datetime(1970, 1, 1)
_CHECK_DEFAULT = datetime(1971, 2, 2)


def parse_input_to_utc_date(value: Any) -> Optional[date]:
    """
    Normalize an arbitrary note property into a UTC calendar date.

    Accepted, in priority order:
      - date / datetime objects (aware datetimes are converted to UTC first,
        naive ones are read as UTC)
      - numbers: epoch milliseconds
      - strings: YYYY-MM-DD, YYYY/M/D, M/D/YYYY (US month-first), then ISO
        timestamps and free-form dates via dateutil

    Returns None for anything that does not describe a valid date.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _datetime_to_utc_date(value)
    if isinstance(value, date):
        return value

    if isinstance(value, (int, float)):
        return _epoch_ms_to_date(value)

    if isinstance(value, str):
        return _parse_date_string(value)

    return None


def format_date_utc_to_ymd(d: date) -> str:
    """Serialize a calendar date as zero-padded YYYY-MM-DD."""
    if isinstance(d, datetime):
        d = _datetime_to_utc_date(d)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def add_days_utc(d: date, days: float) -> Optional[date]:
    """
    Shift a calendar date by whole days (fractions are truncated).
    Returns None when the result falls outside years 1-9999.
    """
    try:
        return d + timedelta(days=int(days))
    except OverflowError:
        return None


def today_utc(now: Optional[datetime] = None) -> date:
    now_dt = now or datetime.now(timezone.utc)
    return _datetime_to_utc_date(now_dt)


def _datetime_to_utc_date(dt: datetime) -> date:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.date()


def _epoch_ms_to_date(value: float) -> Optional[date]:
    try:
        if not math.isfinite(value):
            return None
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError):
        return None


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_date_string(raw: str) -> Optional[date]:
    s = raw.strip()
    if not s:
        return None

    m = _YMD_DASH.match(s)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _YMD_SLASH.match(s)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _MDY_SLASH.match(s)
    if m:
        return _safe_date(int(m.group(3)), int(m.group(1)), int(m.group(2)))

    if _ISO_MARKER.search(s):
        try:
            return _datetime_to_utc_date(date_parser.isoparse(s))
        except (ValueError, OverflowError):
            pass

    try:
        parsed = date_parser.parse(s, default=_FALLBACK_DEFAULT)
        check = date_parser.parse(s, default=_CHECK_DEFAULT)
    except (ValueError, OverflowError):
        return None
    # "May", "5", "Monday": some part came from the default
    if parsed.date() != check.date():
        return None
    return _datetime_to_utc_date(parsed)
