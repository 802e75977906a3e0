"""Shared parsing helpers used by the validation layer and blueprints.

parse_date:     lenient, returns None on bad input
parse_bool:     query-string flags ("1", "true", "yes")
parse_int_arg:  positive integer query arguments with a default
"""
import logging
from datetime import date, datetime

logger = logging.getLogger(__name__)


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY (European format used on paper assessment forms)
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


def parse_int_arg(value, default=None, *, minimum=1, maximum=None):
    """Parse a positive integer query argument, falling back to *default*."""
    if value in (None, ""):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-integer query argument %r", value)
        return default
    if number < minimum:
        return default
    if maximum is not None:
        number = min(number, maximum)
    return number
