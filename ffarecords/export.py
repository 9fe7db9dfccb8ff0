from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from .athle import RawResultEntry
from .buckets import MergedBuckets, YearBuckets
from .dates import parse_iso_instant, to_iso
from .profile import AthleteProfile, Performance
from .timeline import TimelinePoint
from .util import MetricKind, parse_points, parse_wind


def profile_to_dict(profile: AthleteProfile) -> dict[str, Any]:
    """Shape stored by the application for an athlete (camelCase keys)."""
    results_by_year: dict[str, dict[str, list[dict[str, Any]]]] = {}
    for year, key, entries in profile.results_by_year.items():
        results_by_year.setdefault(str(year), {})[key] = [entry_to_dict(e) for e in entries]

    return {
        "athleteId": profile.athlete_id,
        "name": profile.name,
        "currentYear": profile.current_year,
        "records": dict(profile.records),
        "recordPoints": dict(profile.record_points),
        "performances": [
            {"epreuve": p.epreuve, "record": p.record, "bestSeason": p.best_season} for p in profile.performances
        ],
        "performanceTimeline": [point_to_dict(p) for p in profile.performance_timeline],
        "ffaResultsByYear": results_by_year,
        "ffaMergedByEvent": {
            key: [entry_to_dict(e) for e in entries] for key, entries in profile.merged_by_event.items()
        },
        "metrics": {key: kind.value for key, kind in profile.metrics.items()},
    }


def profile_from_dict(data: dict[str, Any]) -> AthleteProfile:
    by_year = YearBuckets()
    for year, events in (data.get("ffaResultsByYear") or {}).items():
        for key, entries in (events or {}).items():
            by_year.add_entries(int(year), key, [entry_from_dict(e) for e in entries or []])

    merged = MergedBuckets()
    for key, entries in (data.get("ffaMergedByEvent") or {}).items():
        merged.extend(key, [entry_from_dict(e) for e in entries or []])

    raw_metrics = data.get("metrics")
    metrics = {key: MetricKind(value) for key, value in raw_metrics.items()} if raw_metrics else merged.metrics()

    timeline: list[TimelinePoint] = []
    for raw in data.get("performanceTimeline") or []:
        point = point_from_dict(raw)
        if point is not None:
            timeline.append(point)

    record_points: dict[str, int] = {}
    for key, value in (data.get("recordPoints") or {}).items():
        pts = parse_points(value)
        if pts is not None:
            record_points[key] = pts

    current_year = data.get("currentYear")
    return AthleteProfile(
        athlete_id=str(data.get("athleteId") or ""),
        name=data.get("name"),
        current_year=int(current_year) if current_year else max(by_year.years(), default=0),
        results_by_year=by_year,
        merged_by_event=merged,
        metrics=metrics,
        records={key: str(value) for key, value in (data.get("records") or {}).items() if value is not None},
        record_points=record_points,
        performances=[
            Performance(epreuve=str(p.get("epreuve") or ""), record=p.get("record"), best_season=p.get("bestSeason"))
            for p in data.get("performances") or []
        ],
        performance_timeline=timeline,
    )


def entry_to_dict(entry: RawResultEntry) -> dict[str, Any]:
    return {
        "date": entry.date,
        "performance": entry.performance,
        "vent": entry.wind,
        "tour": entry.round,
        "place": entry.placement,
        "niveau": entry.level,
        "points": entry.points,
        "lieu": entry.venue,
        "year": entry.year,
        "epreuveOriginal": entry.event_label,
    }


def entry_from_dict(data: dict[str, Any]) -> RawResultEntry:
    year = data.get("year")
    return RawResultEntry(
        date=str(data.get("date") or ""),
        performance=str(data.get("performance") or ""),
        wind=_opt_str(data.get("vent")),
        round=_opt_str(data.get("tour")),
        placement=_opt_str(data.get("place")),
        level=_opt_str(data.get("niveau")),
        points=_opt_str(data.get("points")),
        venue=_opt_str(data.get("lieu")),
        year=int(year) if year not in (None, "") else None,
        event_label=_opt_str(data.get("epreuveOriginal")),
    )


def point_to_dict(point: TimelinePoint) -> dict[str, Any]:
    return {
        "discipline": point.discipline,
        "date": to_iso(point.date),
        "value": point.value,
        "wind": point.wind,
        "meeting": point.meeting,
        "points": point.points,
        "notes": point.notes,
    }


def point_from_dict(data: dict[str, Any]) -> Optional[TimelinePoint]:
    instant = parse_iso_instant(data.get("date"))
    if instant is None:
        return None
    value = data.get("value")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = float(value)
    else:
        value = str(value or "")
    return TimelinePoint(
        discipline=str(data.get("discipline") or ""),
        date=instant,
        value=value,
        wind=parse_wind(data.get("wind")),
        meeting=_opt_str(data.get("meeting")),
        points=parse_points(data.get("points")),
        notes=_opt_str(data.get("notes")),
    )


def write_profile_json(path: Path, profile: AthleteProfile) -> None:
    _write_json(path, profile_to_dict(profile))


def read_profile_json(path: Path) -> AthleteProfile:
    if not path.exists():
        raise FileNotFoundError(f"Fichier introuvable: {path}")
    return profile_from_dict(json.loads(path.read_text(encoding="utf-8")))


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = json.dumps(data, ensure_ascii=False, indent=2)
    path.write_text(raw, encoding="utf-8")
