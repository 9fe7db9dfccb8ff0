from __future__ import annotations

import re
import unicodedata
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser

from .config import NOON_HOUR


_MONTHS: dict[str, int] = {
    "janvier": 1, "janv": 1, "jan": 1,
    "fevrier": 2, "fevr": 2, "fev": 2,
    "mars": 3, "mar": 3,
    "avril": 4, "avr": 4,
    "mai": 5,
    "juin": 6,
    "juillet": 7, "juil": 7,
    "aout": 8,
    "septembre": 9, "sept": 9, "sep": 9,
    "octobre": 10, "oct": 10,
    "novembre": 11, "nov": 11,
    "decembre": 12, "dec": 12,
}

# Optional weekday abbreviation ("sam.", "Di") before the day number.
_DAY_MONTH_RE = re.compile(
    r"^(?:[^\W\d_]{2,9}\.?\s+)?(?P<day>\d{1,2})(?:er)?\s+(?P<month>[^\W\d_][^\W\d_.]*)\.?(?:\s+(?P<year>\d{4}|\d{2}))?$"
)
_NUMERIC_RE = re.compile(r"^(?P<day>\d{1,2})[/.\-](?P<month>\d{1,2})[/.\-](?P<year>\d{4}|\d{2})$")


def normalize_month(value: str) -> Optional[int]:
    text = unicodedata.normalize("NFD", (value or "").strip().lower())
    key = re.sub(r"[^a-z]", "", text)
    return _MONTHS.get(key)


def parse_result_date(raw: Optional[str], year_hint: Optional[int] = None) -> Optional[datetime]:
    """Return the result date as a UTC instant at noon, or None.

    Tried in order: "12 mars" (its own year, else the year hint), "12/03/24",
    then dateutil.
    """
    text = re.sub(r"\s+", " ", raw or "").strip()
    if not text:
        return None

    m = _DAY_MONTH_RE.match(text)
    if m:
        month = normalize_month(m.group("month"))
        if month is not None:
            if m.group("year"):
                return _noon(_full_year(m.group("year")), month, int(m.group("day")))
            if year_hint is None:
                return None
            return _noon(int(year_hint), month, int(m.group("day")))

    m = _NUMERIC_RE.match(text)
    if m:
        return _noon(_full_year(m.group("year")), int(m.group("month")), int(m.group("day")))

    return _parse_generic(text, year_hint=year_hint)


def _full_year(digits: str) -> int:
    year = int(digits)
    return year + 2000 if year < 100 else year


def _noon(year: int, month: int, day: int) -> Optional[datetime]:
    try:
        return datetime(year, month, day, NOON_HOUR, 0, 0, tzinfo=timezone.utc)
    except ValueError:
        return None


def _parse_generic(text: str, *, year_hint: Optional[int]) -> Optional[datetime]:
    if not any(ch.isdigit() for ch in text):
        return None
    default_year = int(year_hint) if year_hint else datetime.now(timezone.utc).year
    try:
        parsed = date_parser.parse(text, dayfirst=True, default=datetime(default_year, 1, 1))
    except (ValueError, OverflowError):
        return None
    return _noon(parsed.year, parsed.month, parsed.day)


def parse_iso_instant(value: object) -> Optional[datetime]:
    """Read back an instant persisted as ISO text (``2024-03-12T12:00:00Z``)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = date_parser.isoparse(text)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(instant: datetime) -> str:
    return instant.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
