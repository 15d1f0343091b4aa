# utils/dates.py
"""
Date helpers for match records.

`played_at` arrives from the record store as a plain calendar date
("2025-01-05"), but older rows and hand-built fixtures sometimes carry a
full ISO timestamp. Everything in the stats engine works on calendar dates.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def parse_played_at(value: Any) -> Optional[date]:
    """
    Coerce a played_at value into a date.

    Accepts date, datetime, 'YYYY-MM-DD' and ISO datetime strings
    (a trailing 'Z' is fine). Returns None when nothing sensible is found.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    s = str(value).strip()
    if not s:
        return None

    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    m = _DATE_RE.match(s)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse created_at/updated_at style timestamps (always tz-aware, UTC if naive)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip()
        if not s:
            return None
        try:
            dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def month_key(d: date) -> str:
    """
    Return the month key in 'YYYY-MM' format.

    Works with both date and datetime.
    """
    return f"{d.year:04d}-{d.month:02d}"


def month_label(mk: str) -> str:
    """'2025-01' -> 'Jan 2025'. Falls back to the key itself."""
    try:
        y, m = mk.split("-")
        return date(int(y), int(m), 1).strftime("%b %Y")
    except Exception:
        return mk


def short_date(d: Optional[date]) -> str:
    """'Jan 5, 2025' (em-dash placeholder when missing)."""
    if d is None:
        return "—"
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def day_label(d: date) -> str:
    """Compact chart axis label, e.g. 'Jan 5'."""
    return f"{d.strftime('%b')} {d.day}"