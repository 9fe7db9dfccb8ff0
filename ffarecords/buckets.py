from __future__ import annotations

from typing import Iterable, Iterator, Optional

from .athle import EventBucket, RawResultEntry
from .event_mapping import classify_metric, representative_performance, sanitize_event_key
from .util import MetricKind


class YearBuckets:
    """Raw results keyed by competition year, then by sanitized event key.

    Entries are tagged with their year and original event label on insertion.
    """

    def __init__(self) -> None:
        self._by_year: dict[int, dict[str, list[RawResultEntry]]] = {}

    def add_year(self, year: int, bucket: EventBucket) -> None:
        for label, entries in bucket.items():
            self.add_entries(year, label, entries)

    def add_entries(self, year: int, label: str, entries: Iterable[RawResultEntry]) -> None:
        key = sanitize_event_key(label)
        events = self._by_year.setdefault(int(year), {})
        target = events.setdefault(key, [])
        for entry in entries:
            if entry.year is None or entry.event_label is None:
                entry = entry.tagged(year=int(year), event_label=entry.event_label or label)
            target.append(entry)

    def extend(self, other: "YearBuckets") -> None:
        for year, key, entries in other.items():
            events = self._by_year.setdefault(year, {})
            events.setdefault(key, []).extend(entries)

    def years(self) -> list[int]:
        return sorted(self._by_year)

    def events(self, year: int) -> dict[str, list[RawResultEntry]]:
        return self._by_year.get(int(year), {})

    def entries(self, year: int, key: str) -> list[RawResultEntry]:
        return self.events(year).get(key, [])

    def items(self) -> Iterator[tuple[int, str, list[RawResultEntry]]]:
        for year in self.years():
            for key, entries in self._by_year[year].items():
                yield year, key, entries

    def merged(self) -> "MergedBuckets":
        merged = MergedBuckets()
        for _year, key, entries in self.items():
            merged.extend(key, entries)
        return merged

    def row_count(self) -> int:
        return sum(len(entries) for _y, _k, entries in self.items())

    def __bool__(self) -> bool:
        return any(entries for _y, _k, entries in self.items())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, YearBuckets):
            return NotImplemented
        return self._by_year == other._by_year


class MergedBuckets:
    """Raw results of all years keyed by sanitized event key."""

    def __init__(self) -> None:
        self._by_event: dict[str, list[RawResultEntry]] = {}

    def extend(self, key: str, entries: Iterable[RawResultEntry]) -> None:
        self._by_event.setdefault(key, []).extend(entries)

    def keys(self) -> list[str]:
        return list(self._by_event)

    def entries(self, key: str) -> list[RawResultEntry]:
        return self._by_event.get(key, [])

    def items(self) -> Iterator[tuple[str, list[RawResultEntry]]]:
        yield from self._by_event.items()

    def label(self, key: str) -> str:
        for entry in self.entries(key):
            if entry.event_label:
                return entry.event_label
        return key

    def metric(self, key: str) -> Optional[MetricKind]:
        entries = self.entries(key)
        if not entries:
            return None
        sample = representative_performance(e.performance for e in entries)
        return classify_metric(self.label(key), sample)

    def metrics(self) -> dict[str, MetricKind]:
        out: dict[str, MetricKind] = {}
        for key in self._by_event:
            kind = self.metric(key)
            if kind is not None:
                out[key] = kind
        return out

    def __bool__(self) -> bool:
        return any(self._by_event.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MergedBuckets):
            return NotImplemented
        return self._by_event == other._by_event
