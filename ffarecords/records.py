from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .athle import RawResultEntry
from .buckets import MergedBuckets
from .normalize import NormalizedEntry, normalize_entry
from .util import MetricKind


@dataclass(frozen=True)
class RecordEntry:
    entry: NormalizedEntry
    metric: MetricKind


@dataclass(frozen=True)
class EventRecords:
    key: str
    label: str
    metric: MetricKind
    record: Optional[RecordEntry]
    season_best: Optional[RecordEntry]


def better_than(metric: MetricKind, candidate: Optional[float], current: Optional[float]) -> bool:
    if candidate is None:
        return False
    if current is None:
        return True
    if metric is MetricKind.TIME:
        return candidate < current
    return candidate > current


def select_best(entries: Iterable[NormalizedEntry]) -> Optional[NormalizedEntry]:
    """Legal marks beat wind-assisted ones; among equals the metric decides.

    Marks without a numeric value never become the best. Exact ties keep the
    entry folded first.
    """
    best: Optional[NormalizedEntry] = None
    for cand in entries:
        if cand.numeric_value is None:
            continue
        if best is None:
            best = cand
            continue
        if cand.legal and not best.legal:
            best = cand
            continue
        if cand.legal == best.legal and better_than(cand.metric, cand.numeric_value, best.numeric_value):
            best = cand
    return best


def season_best(entries: Iterable[NormalizedEntry], current_year: int) -> Optional[NormalizedEntry]:
    pool = list(entries)
    best = select_best(e for e in pool if e.year == int(current_year))
    if best is not None:
        return best
    best = select_best(e for e in pool if e.legal)
    if best is not None:
        return best
    return select_best(pool)


def compute_event_records(
    *,
    key: str,
    entries: Iterable[RawResultEntry],
    metric: MetricKind,
    current_year: int,
    label: Optional[str] = None,
) -> EventRecords:
    normalized = [normalize_entry(e, metric=metric, label=label or key) for e in entries]
    record = select_best(normalized)
    season = season_best(normalized, current_year)
    return EventRecords(
        key=key,
        label=label or (normalized[0].label if normalized else key),
        metric=metric,
        record=RecordEntry(entry=record, metric=metric) if record else None,
        season_best=RecordEntry(entry=season, metric=metric) if season else None,
    )


def build_records(
    merged: MergedBuckets,
    *,
    current_year: int,
    metrics: Optional[dict[str, MetricKind]] = None,
) -> dict[str, EventRecords]:
    kinds = metrics if metrics is not None else merged.metrics()
    out: dict[str, EventRecords] = {}
    for key, entries in merged.items():
        metric = kinds.get(key) or merged.metric(key)
        if metric is None:
            continue
        out[key] = compute_event_records(
            key=key,
            entries=entries,
            metric=metric,
            current_year=current_year,
            label=merged.label(key),
        )
    return out
