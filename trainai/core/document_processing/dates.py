"""Date normalization for extracted certificate fields."""

import re
from datetime import date

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DAY_FIRST_DATE = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})$")


def _build(year: int, month: int, day: int) -> date | None:
    try:
        built = date(year, month, day)
    except ValueError:
        return None
    if (built.year, built.month, built.day) != (year, month, day):
        return None
    return built


def normalize_date(value: str) -> str:
    """
    Normalize a certificate date to ``YYYY-MM-DD``.

    Numeric dates are read day-first (``DD-MM-YYYY`` with ``-``, ``/`` or ``.``
    separators), which is how Dutch and most European certificates print them.
    Impossible calendar dates, two-digit years and anything else unrecognized
    are returned unchanged.

    Examples:
        >>> normalize_date("18-06-2025")
        '2025-06-18'
        >>> normalize_date("31-02-2025")
        '31-02-2025'
    """
    candidate = value.strip()

    match = _ISO_DATE.match(candidate)
    if match:
        built = _build(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        return built.isoformat() if built else value

    match = _DAY_FIRST_DATE.match(candidate)
    if match:
        day, month, year = (int(g) for g in match.groups())
        built = _build(year, month, day)
        return built.isoformat() if built else value

    return value
