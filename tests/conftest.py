from __future__ import annotations

from typing import Optional, Union

import pytest

from ffarecords.ingest import ingest_athlete


def result_row(
    date: str,
    event: str,
    perf: str,
    wind: str = "",
    rnd: str = "",
    place: str = "",
    level: str = "",
    points: str = "",
    venue: str = "",
) -> str:
    cells = [date, event, perf, wind, rnd, place, level, points, venue]
    return "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"


def results_page(*rows: str, max_page: Optional[int] = None) -> str:
    pager = ""
    if max_page:
        pager = '<ul class="pager">' + "".join(f'<li data-page="{n}">{n}</li>' for n in range(1, max_page + 1)) + "</ul>"
    return (
        "<html><body>"
        '<table id="res_athlete"><thead><tr><th>Date</th><th>Epreuve</th><th>Perf</th></tr></thead>'
        f"<tbody>{''.join(rows)}</tbody></table>"
        f"{pager}</body></html>"
    )


class FakeArchive:
    """Stands in for the fetch adapter: (year, page) -> markup or an exception to raise."""

    def __init__(self, pages: dict[tuple[int, int], Union[str, Exception]]) -> None:
        self.pages = pages
        self.calls: list[tuple[int, int]] = []

    def __call__(self, year: int, page: int) -> str:
        self.calls.append((year, page))
        value = self.pages[(year, page)]
        if isinstance(value, Exception):
            raise value
        return value


def sample_pages() -> dict[tuple[int, int], Union[str, Exception]]:
    return {
        (2023, 1): results_page(
            result_row("10 juin", "100m", "10''62", "+1,5", "Finale", "1", "R", "", "Dijon"),
            result_row("24 juin", "100m", "10''41", "+2,6", "Série", "1", "IR", "", "Angers"),
            result_row("2 juil.", "Décathlon", "7012 pts", "", "", "3", "N", "7012", "Talence"),
        ),
        (2024, 1): results_page(
            result_row("12 mai", "100m", "10''55", "+0,8", "Finale", "2", "N", "", "Nantes"),
            result_row("26 mai", "Décathlon", "7250 pts", "", "", "1", "N", "7250", "Talence"),
            result_row("8 juin", "100m", "10''38", "+3,0", "Série", "1", "IR", "", "Lyon"),
            max_page=2,
        ),
        (2024, 2): results_page(
            result_row("15 juin", "100m", "DNF", "", "Finale", "", "N", "", "Paris"),
        ),
    }


@pytest.fixture
def archive() -> FakeArchive:
    return FakeArchive(sample_pages())


@pytest.fixture
def sample_profile(archive: FakeArchive):
    profile, _summary = ingest_athlete(athlete_id="123", name="Jean Dupont", fetch_page=archive, years=[2023, 2024], current_year=2024)
    return profile
