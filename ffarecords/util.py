from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import WIND_LEGAL_LIMIT


class MetricKind(str, Enum):
    TIME = "time"
    DISTANCE = "distance"
    POINTS = "points"


# Apostrophe family seen in the archive as minute/second markers.
PRIME_CHARS = "'’‘′″´ʼ\""
_P = re.escape(PRIME_CHARS)

_PARENS_RE = re.compile(r"\((?P<inner>[^)]+)\)")
_HOURS_RE = re.compile(rf"^(?P<h>\d+)\s*h\s*(?P<m>\d{{1,2}})(?:[{_P}](?P<s>\d{{1,2}})(?:(?:[{_P}]{{1,2}}|[.,])(?P<frac>\d{{1,2}}))?)?")
_MIN_SEC_RE = re.compile(rf"^(?P<m>\d+)[{_P}](?P<s>\d{{1,2}})(?:(?:[{_P}]{{1,2}}|[.,])(?P<frac>\d{{1,2}}))?")
_SEC_RE = re.compile(rf"^(?P<s>\d{{1,3}})[{_P}]{{1,2}}(?P<frac>\d{{0,2}})$")
_COLON_RE = re.compile(r"^(?P<parts>\d+(?::\d{1,2}){1,2})(?:[.,](?P<frac>\d+))?$")
_DECIMAL_RE = re.compile(r"^[+]?(?P<int>\d+)(?:[.,](?P<frac>\d+))?")
_DIGIT_GROUP_RE = re.compile(r"(?<=\d)\s(?=\d{3}\b)")
_INT_RE = re.compile(r"\d+")

# Labels the archive prints in place of a mark.
_NON_FINISH_RE = re.compile(r"^(?:dnf|dns|dq|disq|dsq|np|nr|nm|nc|ab|abd|abandon|forfait|elimin[ée]?)\.?$", re.IGNORECASE)

_WIND_UNIT_RE = re.compile(r"m\s*/?\s*s(?:ec)?\b|m\.s-1", re.IGNORECASE)
_WIND_VALUE_RE = re.compile(r"[+\-]?\d+(?:\.\d+)?")


@dataclass(frozen=True)
class WindReading:
    value: Optional[float]
    legal: bool


def is_non_numeric_label(raw: str) -> bool:
    text = (raw or "").strip()
    if not text:
        return True
    if _NON_FINISH_RE.match(text):
        return True
    return not any(ch.isdigit() for ch in text)


def parse_time(raw: str) -> Optional[float]:
    """Parse an archive time to seconds.

    The corrected time is written in parentheses when the headline figure is
    not the official one, e.g. ``42'59'' (41'16'')``; the inner value wins
    when it parses.
    """
    text = (raw or "").strip()
    if is_non_numeric_label(text):
        return None

    paren = _PARENS_RE.search(text)
    if paren:
        inner = _parse_time_text(paren.group("inner"))
        if inner is not None:
            return inner
        text = _PARENS_RE.sub("", text).strip()

    return _parse_time_text(text)


def _parse_time_text(text: str) -> Optional[float]:
    base = (text or "").strip()
    if is_non_numeric_label(base):
        return None

    m = _HOURS_RE.match(base)
    if m:
        seconds = int(m.group("h")) * 3600 + int(m.group("m")) * 60
        if m.group("s"):
            seconds += int(m.group("s"))
        return seconds + _fraction(m.group("frac"))

    m = _MIN_SEC_RE.match(base)
    if m:
        return int(m.group("m")) * 60 + int(m.group("s")) + _fraction(m.group("frac"))

    m = _SEC_RE.match(base)
    if m:
        return int(m.group("s")) + _fraction(m.group("frac"))

    m = _COLON_RE.match(base)
    if m:
        seconds = 0
        for part in m.group("parts").split(":"):
            seconds = seconds * 60 + int(part)
        return seconds + _fraction(m.group("frac"))

    return _leading_decimal(base)


def _fraction(digits: Optional[str]) -> float:
    if not digits:
        return 0.0
    return int(digits) / (10 ** len(digits))


def _leading_decimal(text: str) -> Optional[float]:
    m = _DECIMAL_RE.match((text or "").strip())
    if not m:
        return None
    return int(m.group("int")) + _fraction(m.group("frac"))


def parse_distance(raw: str) -> Optional[float]:
    """Meters, decimal comma or dot. The archive already stores meters."""
    text = (raw or "").strip()
    if is_non_numeric_label(text):
        return None
    return _leading_decimal(text)


def parse_points(raw: object) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw == raw else None
    text = str(raw).strip()
    if is_non_numeric_label(text):
        return None
    text = _DIGIT_GROUP_RE.sub("", text)
    m = _INT_RE.search(text)
    if not m:
        return None
    return int(m.group(0))


def normalize_value(metric: MetricKind, performance: str, points: Optional[str] = None) -> Optional[float]:
    if metric is MetricKind.TIME:
        return parse_time(performance)
    if metric is MetricKind.DISTANCE:
        return parse_distance(performance)
    value = parse_points(performance)
    if value is None:
        value = parse_points(points)
    return float(value) if value is not None else None


def parse_wind(raw: Optional[object]) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
        return value if value == value else None
    text = str(raw).replace(",", ".").replace("−", "-").replace("–", "-")
    text = _WIND_UNIT_RE.sub("", text).strip()
    if not text:
        return None
    m = _WIND_VALUE_RE.search(text)
    if not m:
        return None
    try:
        return float(m.group(0))
    except ValueError:
        return None


def evaluate_wind(raw: Optional[object]) -> WindReading:
    # No reading never disqualifies a mark.
    value = parse_wind(raw)
    if value is None:
        return WindReading(value=None, legal=True)
    return WindReading(value=value, legal=value <= WIND_LEGAL_LIMIT)


def format_time(seconds: float, *, decimal: bool = False) -> str:
    """Format seconds the way the archive prints them.

    - < 60s: ss''cc (or ss.cc with ``decimal=True``)
    - >= 60s: m'ss''cc
    - >= 3600s: 2h05'30''00
    """
    seconds = max(0.0, float(seconds))
    total = int(round(seconds * 100))

    total_seconds = total // 100
    cents = total % 100

    hours = total_seconds // 3600
    rem = total_seconds % 3600
    minutes = rem // 60
    sec = rem % 60

    if hours > 0:
        return f"{hours}h{minutes:02d}'{sec:02d}''{cents:02d}"
    if minutes > 0:
        return f"{minutes}'{sec:02d}''{cents:02d}"
    if decimal:
        return f"{sec}.{cents:02d}"
    return f"{sec}''{cents:02d}"


def format_distance(value: float, *, decimals: int = 2) -> str:
    decimals = max(0, int(decimals))
    text = f"{float(value):.{decimals}f}"
    return text.replace(".", ",")


def format_value(metric: MetricKind, value: float) -> str:
    if metric is MetricKind.TIME:
        return format_time(value)
    if metric is MetricKind.POINTS:
        return str(int(round(float(value))))
    return format_distance(value)
