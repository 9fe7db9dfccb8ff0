from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional, Union

from .athle import EventBucket, merge_pages, page_count, parse_results_page
from .buckets import YearBuckets
from .profile import AthleteProfile, build_profile


# (year, page) -> raw page text. Supplied by the fetch adapter; pages start at 1.
FetchPage = Callable[[int, int], Union[str, bytes]]


@dataclass(frozen=True)
class IngestSummary:
    years_requested: list[int]
    years_ingested: list[int]
    failed_years: list[int]
    pages: int
    rows: int


@dataclass(frozen=True)
class YearFetch:
    year: int
    bucket: EventBucket
    pages: int


def fetch_year(fetch_page: FetchPage, year: int, *, polite_delay_s: float = 0.0) -> YearFetch:
    """Fetch and extract every results page of one year."""
    first = fetch_page(int(year), 1)
    parsed = [parse_results_page(first)]
    last_page = page_count(first)
    for page in range(2, last_page + 1):
        time.sleep(max(0.0, polite_delay_s))
        parsed.append(parse_results_page(fetch_page(int(year), page)))
    return YearFetch(year=int(year), bucket=merge_pages(parsed), pages=last_page)


def ingest_years(
    fetch_page: FetchPage,
    years: Iterable[int],
    *,
    max_workers: int = 1,
    polite_delay_s: float = 0.0,
) -> tuple[YearBuckets, IngestSummary]:
    requested = sorted({int(y) for y in years})
    fetched: dict[int, YearFetch] = {}
    failed: list[int] = []

    if max_workers > 1 and len(requested) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {pool.submit(fetch_year, fetch_page, y, polite_delay_s=polite_delay_s): y for y in requested}
            for future in as_completed(futures):
                year = futures[future]
                try:
                    fetched[year] = future.result()
                except Exception as exc:  # noqa: BLE001 - one bad year must not stop the others
                    _warn_year(year, exc)
                    failed.append(year)
    else:
        for year in requested:
            try:
                fetched[year] = fetch_year(fetch_page, year, polite_delay_s=polite_delay_s)
            except Exception as exc:  # noqa: BLE001 - one bad year must not stop the others
                _warn_year(year, exc)
                failed.append(year)
                continue
            time.sleep(max(0.0, polite_delay_s))

    buckets = YearBuckets()
    for year in sorted(fetched):
        buckets.add_year(year, fetched[year].bucket)

    summary = IngestSummary(
        years_requested=requested,
        years_ingested=sorted(y for y in fetched if fetched[y].bucket),
        failed_years=sorted(failed),
        pages=sum(f.pages for f in fetched.values()),
        rows=buckets.row_count(),
    )
    return buckets, summary


def ingest_athlete(
    *,
    athlete_id: str,
    fetch_page: FetchPage,
    years: Iterable[int],
    name: Optional[str] = None,
    current_year: Optional[int] = None,
    max_workers: int = 1,
    polite_delay_s: float = 0.0,
) -> tuple[AthleteProfile, IngestSummary]:
    """Build an athlete's profile from whatever years the adapter can deliver.

    No years (e.g. the archive search found nobody) gives an empty profile.
    """
    buckets, summary = ingest_years(fetch_page, years, max_workers=max_workers, polite_delay_s=polite_delay_s)
    profile = build_profile(
        athlete_id=athlete_id,
        name=name,
        results_by_year=buckets,
        current_year=int(current_year) if current_year is not None else date.today().year,
    )
    return profile, summary


def _warn_year(year: int, exc: BaseException) -> None:
    print(f"Avertissement: année {year} ignorée ({type(exc).__name__}: {exc})")
