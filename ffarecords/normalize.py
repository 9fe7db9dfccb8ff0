from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .athle import RawResultEntry
from .dates import parse_result_date
from .util import MetricKind, evaluate_wind, normalize_value, parse_points


@dataclass(frozen=True)
class NormalizedEntry:
    instant: Optional[datetime]
    numeric_value: Optional[float]
    raw_value: str
    wind: Optional[float]
    legal: bool
    metric: MetricKind
    label: str
    year: Optional[int]
    venue: Optional[str]
    round: Optional[str]
    placement: Optional[str]
    points: Optional[int]
    source: RawResultEntry


def normalize_entry(entry: RawResultEntry, *, metric: MetricKind, label: Optional[str] = None) -> NormalizedEntry:
    wind = evaluate_wind(entry.wind)
    return NormalizedEntry(
        instant=parse_result_date(entry.date, entry.year),
        numeric_value=normalize_value(metric, entry.performance, entry.points),
        raw_value=entry.performance,
        wind=wind.value,
        legal=wind.legal,
        metric=metric,
        label=entry.event_label or label or "",
        year=entry.year,
        venue=entry.venue,
        round=entry.round,
        placement=entry.placement,
        points=parse_points(entry.points),
        source=entry,
    )
