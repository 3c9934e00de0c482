"""
Display helpers for session cards, dashboards and profiles.

Values arrive from the backend as ISO strings; every helper also accepts
the parsed date/time objects and degrades to an empty string on bad input.
"""

from datetime import date, datetime, time
from typing import Any, Mapping, Optional, Union

DEFAULT_DISPLAY_NAME = "Fitness Enthusiast"

DateLike = Union[str, date, datetime, None]
TimeLike = Union[str, time, None]


def _parse_date(value: DateLike) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        if "T" in value or " " in value.strip():
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_time(value: TimeLike) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(value)
    except ValueError:
        return None


def format_session_date(value: DateLike) -> str:
    """
    Long date for session cards.

    Example:
        >>> format_session_date("2025-01-06")
        'Monday, January 6, 2025'
    """
    parsed = _parse_date(value)
    if parsed is None:
        return ""
    return f"{parsed:%A}, {parsed:%B} {parsed.day}, {parsed.year}"


def format_short_date(value: DateLike) -> str:
    """Numeric month/day/year date, e.g. ``1/6/2025``."""
    parsed = _parse_date(value)
    if parsed is None:
        return ""
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def format_time(value: TimeLike) -> str:
    parsed = _parse_time(value)
    if parsed is None:
        return ""
    return parsed.strftime("%H:%M")


def format_time_range(start: TimeLike, end: TimeLike) -> str:
    """Render ``start - end`` in 24-hour HH:MM."""
    return f"{format_time(start)} - {format_time(end)}"


def format_session_type(session_type: Optional[str]) -> str:
    """Capitalized type label, e.g. ``personal`` -> ``Personal Training``."""
    if not session_type:
        return ""
    return f"{session_type[:1].upper()}{session_type[1:]} Training"


def format_price(price: Any) -> str:
    """Dollar amount with two decimals."""
    if price is None or price == "":
        return ""
    try:
        return f"${float(price):,.2f}"
    except (TypeError, ValueError):
        return ""


def display_name(metadata: Optional[Mapping[str, Any]], fallback: str = DEFAULT_DISPLAY_NAME) -> str:
    """
    Name to greet the user with.

    Args:
        metadata: The auth user's metadata
        fallback: Returned when no full name is set
    """
    if metadata:
        full_name = metadata.get("full_name")
        if full_name:
            return str(full_name)
    return fallback
