# utils/durations.py
"""
Free-text match duration helpers.

Players type whatever they like into the "time taken" box ("3h 42m",
"45m", "2h 15m 30s", "1H"). We only care about the first hour / minute /
second token of each kind. Seconds are folded into fractional minutes.
"""

from __future__ import annotations

import math
import re
from typing import Any

_HOURS_RE = re.compile(r"(\d+)\s*h", re.IGNORECASE)
_MINUTES_RE = re.compile(r"(\d+)\s*m", re.IGNORECASE)
_SECONDS_RE = re.compile(r"(\d+)\s*s", re.IGNORECASE)

LESS_THAN_A_MINUTE = "< 1m"


def parse_duration(text: Any) -> float:
    """
    Convert a duration string to minutes.

    Examples:
        >>> parse_duration("3h 42m")
        222
        >>> parse_duration("45m")
        45
        >>> parse_duration("")
        0

    The sub-minute placeholder produced by format_minutes reads back as 0.
    """
    if not text or not isinstance(text, str):
        return 0
    if text.strip() == LESS_THAN_A_MINUTE:
        return 0

    total: float = 0

    m = _HOURS_RE.search(text)
    if m:
        total += int(m.group(1)) * 60

    m = _MINUTES_RE.search(text)
    if m:
        total += int(m.group(1))

    m = _SECONDS_RE.search(text)
    if m:
        total += int(m.group(1)) / 60

    return total


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _split(minutes: float) -> tuple[int, int]:
    hours, mins = divmod(_round_half_up(minutes), 60)
    return hours, mins


def _render(hours: int, mins: int) -> str:
    if hours > 0 and mins > 0:
        return f"{hours}h {mins}m"
    if hours > 0:
        return f"{hours}h"
    return f"{mins}m"


def format_minutes(minutes: float) -> str:
    """Render minutes as 'Xh Ym' / 'Xh' / 'Ym' ('< 1m' below one minute)."""
    try:
        minutes = float(minutes or 0)
    except (TypeError, ValueError):
        minutes = 0.0

    if minutes < 1:
        return LESS_THAN_A_MINUTE

    hours, mins = _split(minutes)
    return _render(hours, mins)


def format_total(minutes: float) -> str:
    """Like format_minutes, but zero is a normal value and renders '0m'."""
    try:
        minutes = max(0.0, float(minutes or 0))
    except (TypeError, ValueError):
        minutes = 0.0

    hours, mins = _split(minutes)
    if hours <= 0 and mins <= 0:
        return "0m"
    return _render(hours, mins)
