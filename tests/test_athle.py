from __future__ import annotations

from ffarecords.athle import RawResultRow, build_results_url, merge_pages, page_count, parse_results_page

from conftest import result_row, results_page


class TestParseResultsPage:
    def test_groups_rows_by_event_in_document_order(self):
        page = results_page(
            result_row("12 mars", "100m", "10''50", "+1,2", "Finale", "1", "IR", "", "Paris"),
            result_row("20 avr.", "Longueur", "7,25", "", "Concours", "2", "N", "", "Lyon"),
            result_row("3 mai", "100m", "10''20", "+3,1", "Série", "1", "IR", "", "Lyon"),
        )
        bucket = parse_results_page(page)

        assert list(bucket) == ["100m", "Longueur"]
        assert [e.performance for e in bucket["100m"]] == ["10''50", "10''20"]
        first = bucket["100m"][0]
        assert first.date == "12 mars"
        assert first.wind == "+1,2"
        assert first.round == "Finale"
        assert first.placement == "1"
        assert first.level == "IR"
        assert first.venue == "Paris"

    def test_empty_cells_become_none(self):
        bucket = parse_results_page(results_page(result_row("20 avr.", "Longueur", "7,25")))
        entry = bucket["Longueur"][0]
        assert entry.wind is None
        assert entry.points is None
        assert entry.venue is None

    def test_short_rows_are_skipped(self):
        page = results_page(
            "<tr><td colspan=\"9\">Détail de la course</td></tr>",
            "<tr><td>a</td><td>b</td><td>c</td><td>d</td><td>e</td><td>f</td><td>g</td><td>h</td></tr>",
            result_row("12 mars", "100m", "10''50"),
        )
        bucket = parse_results_page(page)
        assert list(bucket) == ["100m"]
        assert len(bucket["100m"]) == 1

    def test_extra_cells_are_ignored(self):
        row = (
            "<tr>"
            + "".join(f"<td>{c}</td>" for c in ["12 mars", "200m", "21''40", "+0,4", "", "", "", "", "Caen", "extra"])
            + "</tr>"
        )
        bucket = parse_results_page(results_page(row))
        assert bucket["200m"][0].venue == "Caen"

    def test_cell_whitespace_is_collapsed(self):
        row = result_row(" 12\n mars ", " 100m ", "\n 10''50 ", "", "", "", "", "", "Saint&#160;Denis")
        entry = parse_results_page(results_page(row))["100m"][0]
        assert entry.date == "12 mars"
        assert entry.performance == "10''50"
        assert entry.venue == "Saint Denis"

    def test_bytes_input(self):
        page = results_page(result_row("12 mars", "Décathlon", "7012 pts")).encode("utf-8")
        assert "Décathlon" in parse_results_page(page)

    def test_blank_page(self):
        assert parse_results_page("") == {}
        assert parse_results_page("   ") == {}
        assert parse_results_page(results_page()) == {}


class TestRawResultRow:
    def test_from_cells(self):
        row = RawResultRow.from_cells(["12 mars", "100m", "10''50", "", "Finale", "1", "", "", "Paris"])
        assert row is not None
        assert row.event_label == "100m"
        assert row.wind is None
        assert row.entry().round == "Finale"

    def test_too_few_cells(self):
        assert RawResultRow.from_cells(["12 mars", "100m", "10''50"]) is None


class TestPages:
    def test_merge_keeps_page_order(self):
        p1 = parse_results_page(results_page(result_row("12 mai", "100m", "10''55")))
        p2 = parse_results_page(
            results_page(result_row("15 juin", "100m", "DNF"), result_row("16 juin", "200m", "21''90"))
        )
        merged = merge_pages([p1, p2])
        assert [e.performance for e in merged["100m"]] == ["10''55", "DNF"]
        assert list(merged) == ["100m", "200m"]

    def test_page_count(self):
        assert page_count(results_page(max_page=3)) == 3
        assert page_count(results_page()) == 1
        assert page_count('<a href="/bases/liste.aspx?frmpage=0&amp;page=4">4</a>') == 4
        assert page_count("") == 1


class TestResultsUrl:
    def test_first_page(self):
        assert build_results_url(athlete_id="123", year=2024) == (
            "https://www.athle.fr/ajax/fiche-athlete-resultats.aspx?seq=123&annee=2024"
        )

    def test_later_page(self):
        assert build_results_url(athlete_id="123", year=2024, page=3).endswith("&annee=2024&page=3")
