from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence

from lxml import etree, html

from .config import ATHLE_RESULTS_URL, MIN_ROW_CELLS


_PAGER_RE = re.compile(r"data-page=\"(?P<n>\d+)\"|[?&;]page=(?P<q>\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class RawResultEntry:
    date: str
    performance: str
    wind: Optional[str] = None
    round: Optional[str] = None
    placement: Optional[str] = None
    level: Optional[str] = None
    points: Optional[str] = None
    venue: Optional[str] = None
    year: Optional[int] = None
    event_label: Optional[str] = None

    def tagged(self, *, year: int, event_label: str) -> "RawResultEntry":
        return replace(self, year=int(year), event_label=event_label)


# Literal event label -> entries, for one page or one year.
EventBucket = dict[str, list[RawResultEntry]]


@dataclass(frozen=True)
class RawResultRow:
    date: str
    event_label: str
    performance: str
    wind: Optional[str]
    round: Optional[str]
    placement: Optional[str]
    level: Optional[str]
    points: Optional[str]
    venue: Optional[str]

    @classmethod
    def from_cells(cls, cells: Sequence[str]) -> Optional["RawResultRow"]:
        # Column order of the results table: date, epreuve, perf, vent, tour, place, niveau, points, lieu.
        if len(cells) < MIN_ROW_CELLS:
            return None
        date, event_label, performance, wind, rnd, placement, level, points, venue = cells[:MIN_ROW_CELLS]
        return cls(
            date=date,
            event_label=event_label,
            performance=performance,
            wind=wind or None,
            round=rnd or None,
            placement=placement or None,
            level=level or None,
            points=points or None,
            venue=venue or None,
        )

    def entry(self) -> RawResultEntry:
        return RawResultEntry(
            date=self.date,
            performance=self.performance,
            wind=self.wind,
            round=self.round,
            placement=self.placement,
            level=self.level,
            points=self.points,
            venue=self.venue,
        )


def build_results_url(*, athlete_id: str, year: int, page: int = 1) -> str:
    url = f"{ATHLE_RESULTS_URL}?seq={athlete_id}&annee={int(year)}"
    if page > 1:
        url += f"&page={int(page)}"
    return url


def parse_results_page(markup: str | bytes) -> EventBucket:
    """Group the result rows of one page by event label, in document order.

    Rows with fewer than nine cells (headers, detail rows, decoration) are skipped.
    """
    out: EventBucket = {}
    for row in iter_result_rows(markup):
        out.setdefault(row.event_label, []).append(row.entry())
    return out


def iter_result_rows(markup: str | bytes) -> Iterable[RawResultRow]:
    text = markup.decode("utf-8", errors="replace") if isinstance(markup, bytes) else (markup or "")
    if not text.strip():
        return
    try:
        doc = html.fromstring(text)
    except (etree.ParserError, ValueError):
        return

    for tr in doc.iter("tr"):
        cells = [_norm_cell(td.text_content()) for td in tr.xpath("./td")]
        row = RawResultRow.from_cells(cells)
        if row is None:
            continue
        if not row.event_label:
            continue
        yield row


def merge_pages(pages: Iterable[EventBucket]) -> EventBucket:
    """Concatenate per-event lists across pages, keeping each page's order."""
    merged: EventBucket = {}
    for page in pages:
        for label, entries in page.items():
            merged.setdefault(label, []).extend(entries)
    return merged


def page_count(markup: str | bytes) -> int:
    """Highest page number advertised by the results pager (at least 1)."""
    text = markup.decode("utf-8", errors="replace") if isinstance(markup, bytes) else (markup or "")
    pages = [1]
    for m in _PAGER_RE.finditer(text):
        value = m.group("n") or m.group("q")
        try:
            pages.append(int(value))
        except (TypeError, ValueError):
            continue
    return max(pages)


def _norm_cell(text: str) -> str:
    s = (text or "").replace("\u00a0", " ").replace("\r", " ").replace("\n", " ").strip()
    return re.sub(r"\s+", " ", s)
