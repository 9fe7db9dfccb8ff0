from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .buckets import MergedBuckets, YearBuckets
from .event_mapping import event_sort_key
from .records import EventRecords, build_records
from .timeline import TimelinePoint, points_from_merged
from .util import MetricKind


@dataclass(frozen=True)
class Performance:
    epreuve: str
    record: Optional[str]
    best_season: Optional[str]


@dataclass
class AthleteProfile:
    """Everything the application stores for one athlete's archive results."""

    athlete_id: str
    current_year: int
    name: Optional[str] = None
    results_by_year: YearBuckets = field(default_factory=YearBuckets)
    merged_by_event: MergedBuckets = field(default_factory=MergedBuckets)
    metrics: dict[str, MetricKind] = field(default_factory=dict)
    records: dict[str, str] = field(default_factory=dict)
    record_points: dict[str, int] = field(default_factory=dict)
    performances: list[Performance] = field(default_factory=list)
    performance_timeline: list[TimelinePoint] = field(default_factory=list)

    def event_records(self) -> dict[str, EventRecords]:
        return build_records(self.merged_by_event, current_year=self.current_year, metrics=self.metrics)

    def is_empty(self) -> bool:
        return not self.results_by_year and not self.merged_by_event and not self.performance_timeline


def build_profile(
    *,
    athlete_id: str,
    results_by_year: YearBuckets,
    current_year: int,
    name: Optional[str] = None,
) -> AthleteProfile:
    merged = results_by_year.merged()
    metrics = merged.metrics()
    by_event = build_records(merged, current_year=current_year, metrics=metrics)

    records: dict[str, str] = {}
    record_points: dict[str, int] = {}
    performances: list[Performance] = []
    for key in sorted(by_event, key=lambda k: event_sort_key(by_event[k].label)):
        ev = by_event[key]
        rec = ev.record.entry if ev.record else None
        season = ev.season_best.entry if ev.season_best else None
        if rec is not None:
            records[key] = rec.raw_value
            pts = rec.points
            if pts is None and ev.metric is MetricKind.POINTS and rec.numeric_value is not None:
                pts = int(rec.numeric_value)
            if pts is not None:
                record_points[key] = pts
        if rec is not None or season is not None:
            performances.append(
                Performance(
                    epreuve=ev.label,
                    record=rec.raw_value if rec else None,
                    best_season=season.raw_value if season else None,
                )
            )

    return AthleteProfile(
        athlete_id=str(athlete_id),
        name=name,
        current_year=int(current_year),
        results_by_year=results_by_year,
        merged_by_event=merged,
        metrics=metrics,
        records=records,
        record_points=record_points,
        performances=performances,
        performance_timeline=points_from_merged(merged, metrics=metrics),
    )


def add_years(profile: AthleteProfile, new_years: YearBuckets, *, current_year: Optional[int] = None) -> AthleteProfile:
    """Fold newly ingested years into a profile; records are recomputed from scratch.

    A year present in ``new_years`` replaces the stored copy of that year.
    """
    fresh = set(new_years.years())
    combined = YearBuckets()
    for year, key, entries in profile.results_by_year.items():
        if year not in fresh:
            combined.add_entries(year, key, entries)
    combined.extend(new_years)
    return build_profile(
        athlete_id=profile.athlete_id,
        name=profile.name,
        results_by_year=combined,
        current_year=current_year if current_year is not None else profile.current_year,
    )
