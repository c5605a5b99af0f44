"""Display helpers shared by the CLI and API."""

from __future__ import annotations

import math
from datetime import datetime

PLACEHOLDER = "—"


def _parse_date(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_currency(amount: float) -> str:
    """Whole-dollar USD, e.g. ``$1,234`` or ``-$1,234``."""
    if not math.isfinite(amount):
        return PLACEHOLDER
    rounded = round(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.0f}"


def format_percent(value: float) -> str:
    if not math.isfinite(value):
        return PLACEHOLDER
    return f"{value:.1f}%"


def format_date(value: str | datetime) -> str:
    dt = _parse_date(value)
    return f"{dt:%b} {dt.day}, {dt.year}"


def format_datetime(value: str | datetime) -> str:
    dt = _parse_date(value)
    return f"{format_date(dt)}, {dt:%I:%M %p}"


def days_between(first: str | datetime, second: str | datetime) -> int:
    """Whole days between two timestamps, rounded up, order-insensitive."""
    delta = abs(_parse_date(second) - _parse_date(first))
    return math.ceil(delta.total_seconds() / 86_400)
