from __future__ import annotations

import re
from typing import Callable, Iterable, Optional

from .config import TIME_FALLBACK_MAX_SECONDS
from .util import PRIME_CHARS, MetricKind, parse_time


_COMBINED_RE = re.compile(r"d[ée]cathlon|heptathlon|pentathlon|octathlon|triathlon|combin[ée]", re.IGNORECASE)
_POINTS_MARK_RE = re.compile(r"pts|points", re.IGNORECASE)
_ENDURANCE_LABEL_RE = re.compile(r"km|marathon|\d+m")
_HOURS_MARK_RE = re.compile(r"\d\s*h\s*\d")
_KEY_UNSAFE_RE = re.compile(r"[.$]")

_EVENT_ORDER_PATTERNS: tuple[tuple[int, re.Pattern[str]], ...] = (
    # Hurdles and steeple before flat races sharing the same distance prefix.
    (12, re.compile(r"^\d+\s*m\s+steeple\b", re.IGNORECASE)),
    (13, re.compile(r"^(?:60|100|110)\s*m\s+haies\b", re.IGNORECASE)),
    (14, re.compile(r"^400\s*m\s+haies\b", re.IGNORECASE)),
    (0, re.compile(r"^60\s*m(?:\s|$)", re.IGNORECASE)),
    (1, re.compile(r"^100\s*m(?:\s|$)", re.IGNORECASE)),
    (2, re.compile(r"^200\s*m(?:\s|$)", re.IGNORECASE)),
    (3, re.compile(r"^400\s*m(?:\s|$)", re.IGNORECASE)),
    (4, re.compile(r"^800\s*m(?:\s|$)", re.IGNORECASE)),
    (5, re.compile(r"^1[\s.]?500\s*m(?:\s|$)", re.IGNORECASE)),
    (6, re.compile(r"^3[\s.]?000\s*m(?:\s|$)", re.IGNORECASE)),
    (7, re.compile(r"^5[\s.]?000\s*m(?:\s|$)", re.IGNORECASE)),
    (8, re.compile(r"^10[\s.]?000\s*m(?:\s|$)", re.IGNORECASE)),
    (9, re.compile(r"^\d+\s*km\b", re.IGNORECASE)),
    (10, re.compile(r"^semi[\s-]?marathon\b", re.IGNORECASE)),
    (11, re.compile(r"^marathon\b", re.IGNORECASE)),
    (15, re.compile(r"^hauteur\b", re.IGNORECASE)),
    (16, re.compile(r"^perche\b", re.IGNORECASE)),
    (17, re.compile(r"^longueur\b", re.IGNORECASE)),
    (18, re.compile(r"^triple\s+saut\b", re.IGNORECASE)),
    (19, re.compile(r"^poids\b", re.IGNORECASE)),
    (20, re.compile(r"^disque\b", re.IGNORECASE)),
    (21, re.compile(r"^marteau\b", re.IGNORECASE)),
    (22, re.compile(r"^javelot\b", re.IGNORECASE)),
    (23, re.compile(r"d[ée]cathlon|heptathlon|pentathlon", re.IGNORECASE)),
    (24, re.compile(r"^marche\b", re.IGNORECASE)),
    (25, re.compile(r"^4\s*x\s*\d+", re.IGNORECASE)),
)


def _is_combined_event(label: str, performance: str) -> bool:
    return bool(_COMBINED_RE.search(label) or _POINTS_MARK_RE.search(performance))


def _looks_like_time(label: str, performance: str) -> bool:
    if ":" in performance or any(ch in performance for ch in PRIME_CHARS):
        return True
    if _HOURS_MARK_RE.search(performance):
        return True
    return bool(_ENDURANCE_LABEL_RE.search(re.sub(r"\s+", "", label.lower())))


def _is_timed_event(label: str, performance: str) -> bool:
    seconds = parse_time(performance)
    if seconds is None:
        return False
    return _looks_like_time(label, performance) or seconds < TIME_FALLBACK_MAX_SECONDS


# Ordered decision table; the first matching predicate decides.
_METRIC_RULES: tuple[tuple[MetricKind, Callable[[str, str], bool]], ...] = (
    (MetricKind.POINTS, _is_combined_event),
    (MetricKind.TIME, _is_timed_event),
)


def classify_metric(label: str, performance: str) -> MetricKind:
    """Decide whether an event is scored as time, distance or points.

    Short decimal marks with no time hint fall under the 20 minute fallback and
    classify as time; telling them apart from field marks needs an event table.
    """
    label_text = (label or "").strip()
    perf_text = (performance or "").strip()
    for kind, matches in _METRIC_RULES:
        if matches(label_text, perf_text):
            return kind
    return MetricKind.DISTANCE


def representative_performance(performances: Iterable[str]) -> str:
    """First performance carrying a digit, so that "DNF" rows do not decide the metric."""
    first: Optional[str] = None
    for perf in performances:
        text = (perf or "").strip()
        if first is None:
            first = text
        if any(ch.isdigit() for ch in text):
            return text
    return first or ""


def sanitize_event_key(label: str) -> str:
    key = _KEY_UNSAFE_RE.sub("_", (label or "").strip())
    return key or "epreuve"


def normalize_discipline(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def event_sort_key(label: str) -> tuple[int, str]:
    idx = _event_order_index(label)
    name = (label or "").strip()
    return (idx if idx is not None else 10_000, name.lower())


def _event_order_index(label: str) -> Optional[int]:
    name = (label or "").strip()
    if not name:
        return None
    for idx, pat in _EVENT_ORDER_PATTERNS:
        if pat.search(name):
            return int(idx)
    return None
