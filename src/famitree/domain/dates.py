"""Partial dates as stored on Person.

Stored forms: "" / None, full "YYYY-MM-DD", year only "YYYY", month-day with an
unknown year "--MM-DD". Anything else (lunar-calendar markers, free text) is
opaque: kept and displayed verbatim, never used for arithmetic.
"""

import re
from datetime import date
from enum import Enum

_FULL_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_YEAR_RE = re.compile(r"^(\d{4})$")
_MONTH_DAY_RE = re.compile(r"^--(\d{2})-(\d{2})$")

# Any leap year works; used to validate month-day values.
_LEAP_YEAR = 2000


class DateKind(str, Enum):
    EMPTY = "empty"
    FULL = "full"
    YEAR = "year"
    MONTH_DAY = "month-day"
    OPAQUE = "opaque"


def _valid_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def classify_date(value: str | None) -> DateKind:
    if value is None or not value.strip():
        return DateKind.EMPTY
    s = value.strip()
    m = _FULL_RE.match(s)
    if m and _valid_date(int(m[1]), int(m[2]), int(m[3])):
        return DateKind.FULL
    if _YEAR_RE.match(s):
        return DateKind.YEAR
    m = _MONTH_DAY_RE.match(s)
    if m and _valid_date(_LEAP_YEAR, int(m[1]), int(m[2])):
        return DateKind.MONTH_DAY
    return DateKind.OPAQUE


def to_date(value: str | None) -> date | None:
    """Return the calendar date for a full date value, else None."""
    if classify_date(value) is not DateKind.FULL:
        return None
    y, m, d = (int(part) for part in value.strip().split("-"))
    return date(y, m, d)


def _year_of(value: str | None) -> int | None:
    kind = classify_date(value)
    if kind is DateKind.FULL:
        return to_date(value).year
    if kind is DateKind.YEAR:
        return int(value.strip())
    return None


def _month_day_of(value: str | None) -> tuple[int, int] | None:
    kind = classify_date(value)
    if kind is DateKind.FULL:
        d = to_date(value)
        return d.month, d.day
    if kind is DateKind.MONTH_DAY:
        s = value.strip()
        return int(s[2:4]), int(s[5:7])
    return None


def format_date_display(value: str | None) -> str:
    """dd/MM/yyyy for full dates, dd/MM for month-day; other values verbatim."""
    if value is None or not value.strip():
        return ""
    kind = classify_date(value)
    if kind is DateKind.FULL:
        return to_date(value).strftime("%d/%m/%Y")
    if kind is DateKind.MONTH_DAY:
        month, day = _month_day_of(value)
        return f"{day:02d}/{month:02d}"
    return value


def parse_date_input(text: str | None) -> str:
    """Parse dd/MM/yyyy or dd-MM-yyyy into ISO YYYY-MM-DD. Returns "" if invalid.

    Two-digit years pivot at 50: 49 -> 2049, 50 -> 1950.
    """
    if not text or not text.strip():
        return ""
    parts = re.split(r"[/-]", text.strip())
    if len(parts) != 3:
        return ""
    try:
        day, month, year = (int(p) for p in parts)
    except ValueError:
        return ""
    if 0 <= year < 100:
        year += 1900 if year >= 50 else 2000
    parsed = _valid_date(year, month, day)
    return parsed.isoformat() if parsed else ""


def current_age(
    birth_date: str | None,
    death_date: str | None = None,
    today: date | None = None,
) -> int | None:
    """Age in whole years; age at death when death_date is set.

    Year-only values give an approximate age (difference of years). Returns None
    when the birth year is unknown, the death date cannot be interpreted, or the
    result would be negative.
    """
    birth_year = _year_of(birth_date)
    if birth_year is None:
        return None
    today = today or date.today()
    if death_date and death_date.strip():
        end_year = _year_of(death_date)
        if end_year is None:
            return None
        end = to_date(death_date)
    else:
        end_year = today.year
        end = today

    age = end_year - birth_year
    birth = to_date(birth_date)
    if birth is not None and end is not None:
        if (end.month, end.day) < (birth.month, birth.day):
            age -= 1
    return age if age >= 0 else None


def next_occurrence(value: str | None, today: date | None = None) -> tuple[date, int] | None:
    """Next anniversary of the value's month and day on or after today.

    Returns (date, days_until) with 0 meaning today, or None when the value has
    no known month and day. 29 February falls on 28 February in non-leap years.
    """
    md = _month_day_of(value)
    if md is None:
        return None
    today = today or date.today()
    month, day = md

    def in_year(year: int) -> date:
        return _valid_date(year, month, day) or date(year, month, day - 1)

    nxt = in_year(today.year)
    if nxt < today:
        nxt = in_year(today.year + 1)
    return nxt, (nxt - today).days
