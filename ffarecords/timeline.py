from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Union

from .buckets import MergedBuckets, YearBuckets
from .event_mapping import classify_metric, normalize_discipline, representative_performance
from .normalize import NormalizedEntry, normalize_entry
from .util import MetricKind

if TYPE_CHECKING:
    from .profile import AthleteProfile


@dataclass(frozen=True)
class TimelinePoint:
    discipline: str
    date: datetime
    value: Union[float, str]
    wind: Optional[float] = None
    meeting: Optional[str] = None
    points: Optional[int] = None
    notes: Optional[str] = None


def point_from_entry(entry: NormalizedEntry) -> Optional[TimelinePoint]:
    if entry.instant is None:
        return None
    value: Union[float, str] = entry.numeric_value if entry.numeric_value is not None else entry.raw_value
    return TimelinePoint(
        discipline=entry.label,
        date=entry.instant,
        value=value,
        wind=entry.wind,
        meeting=entry.venue,
        points=entry.points,
        notes=_notes(entry),
    )


def _notes(entry: NormalizedEntry) -> Optional[str]:
    level = entry.source.level
    text = (entry.round or "").strip()
    if level:
        text = f"{text} ({level})".strip()
    return text or None


def points_from_year_buckets(
    buckets: YearBuckets,
    *,
    metrics: Optional[dict[str, MetricKind]] = None,
) -> list[TimelinePoint]:
    points: list[TimelinePoint] = []
    for _year, key, entries in buckets.items():
        metric = _metric_for(key, entries, metrics)
        points.extend(_points(entries, metric=metric, label=key))
    return sort_points(points)


def points_from_merged(
    merged: MergedBuckets,
    *,
    metrics: Optional[dict[str, MetricKind]] = None,
) -> list[TimelinePoint]:
    points: list[TimelinePoint] = []
    for key, entries in merged.items():
        metric = _metric_for(key, entries, metrics)
        points.extend(_points(entries, metric=metric, label=key))
    return sort_points(points)


def _metric_for(key: str, entries: list, metrics: Optional[dict[str, MetricKind]]) -> MetricKind:
    if metrics and key in metrics:
        return metrics[key]
    label = next((e.event_label for e in entries if e.event_label), key)
    return classify_metric(label, representative_performance(e.performance for e in entries))


def _points(entries: Iterable, *, metric: MetricKind, label: str) -> list[TimelinePoint]:
    out: list[TimelinePoint] = []
    for raw in entries:
        point = point_from_entry(normalize_entry(raw, metric=metric, label=label))
        if point is not None:
            out.append(point)
    return out


def filter_points(points: Iterable[TimelinePoint], discipline: Optional[str] = None) -> list[TimelinePoint]:
    wanted = normalize_discipline(discipline) if discipline else ""
    if not wanted:
        return list(points)
    return [p for p in points if normalize_discipline(p.discipline) == wanted]


def sort_points(points: Iterable[TimelinePoint]) -> list[TimelinePoint]:
    return sorted(points, key=lambda p: p.date)


def get_timeline(profile: "AthleteProfile", discipline: Optional[str] = None) -> list[TimelinePoint]:
    """Chronological points for an athlete, optionally for one discipline.

    Sources, each used only when the previous one has nothing for the filter:
    the stored timeline, the per-year raw results, the merged per-event results.
    """
    tiers: tuple[Callable[[], list[TimelinePoint]], ...] = (
        lambda: list(profile.performance_timeline),
        lambda: points_from_year_buckets(profile.results_by_year, metrics=profile.metrics),
        lambda: points_from_merged(profile.merged_by_event, metrics=profile.metrics),
    )
    for tier in tiers:
        points = sort_points(filter_points(tier(), discipline))
        if points:
            return points
    return []


def get_merged_by_event(profile: "AthleteProfile", discipline: Optional[str] = None) -> list[TimelinePoint]:
    points = points_from_merged(profile.merged_by_event, metrics=profile.metrics)
    return sort_points(filter_points(points, discipline))
