from __future__ import annotations

import json

import pytest

from ffarecords import db as profiles_db
from ffarecords.cli import main
from ffarecords.pages import CachedPageSource, page_filename

from conftest import result_row, results_page, sample_pages


def _ingest(pages_dir, db_path, *extra: str) -> int:
    return main(
        [
            "ingest",
            "--athlete-id",
            "123",
            "--name",
            "Jean Dupont",
            "--pages-dir",
            str(pages_dir),
            "--db",
            str(db_path),
            "--current-year",
            "2024",
            *extra,
        ]
    )


def _stored(db_path, athlete_id="123"):
    con = profiles_db.connect(db_path)
    try:
        return profiles_db.load_profile(con, athlete_id)
    finally:
        con.close()


@pytest.fixture
def pages_dir(tmp_path):
    root = tmp_path / "athle"
    athlete_dir = root / "123"
    athlete_dir.mkdir(parents=True)
    for (year, page), markup in sample_pages().items():
        (athlete_dir / page_filename(year, page)).write_text(markup, encoding="utf-8")
    return root


@pytest.fixture
def ingested_db(tmp_path, pages_dir):
    db_path = tmp_path / "profiles.sqlite3"
    assert _ingest(pages_dir, db_path) == 0
    return db_path


class TestCachedPageSource:
    def test_available_years(self, pages_dir):
        source = CachedPageSource(cache_dir=pages_dir, athlete_id="123")
        assert source.available_years() == [2024, 2023]
        assert b"10''62" in source(2023, 1)

    def test_missing_page(self, pages_dir):
        source = CachedPageSource(cache_dir=pages_dir, athlete_id="123")
        with pytest.raises(FileNotFoundError):
            source(2019, 1)

    def test_unknown_athlete(self, pages_dir):
        assert CachedPageSource(cache_dir=pages_dir, athlete_id="999").available_years() == []


class TestCommands:
    def test_ingest_summary(self, tmp_path, pages_dir, capsys):
        assert _ingest(pages_dir, tmp_path / "profiles.sqlite3") == 0
        out = capsys.readouterr().out
        assert "Import terminé:" in out
        assert "years=2023,2024" in out
        assert "failed=-" in out
        assert "rows=7" in out

    def test_records(self, ingested_db, capsys):
        capsys.readouterr()
        assert main(["records", "--athlete-id", "123", "--db", str(ingested_db)]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "100m [time] | record 10''55 | saison 2024: 10''55"
        assert lines[1] == "Décathlon [points] | record 7250 pts | saison 2024: 7250 pts"

    def test_timeline(self, ingested_db, capsys):
        capsys.readouterr()
        assert main(["timeline", "--athlete-id", "123", "--discipline", "100m", "--db", str(ingested_db)]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 5
        assert lines[0] == "2023-06-10 | 100m | 10''62 | +1.5 | Dijon | Finale (R)"
        assert lines[-1].startswith("2024-06-15 | 100m | DNF | - | Paris")

    def test_export(self, ingested_db, tmp_path, capsys):
        out_path = tmp_path / "out" / "123.json"
        assert main(["export", "--athlete-id", "123", "--db", str(ingested_db), "--out", str(out_path)]) == 0
        data = json.loads(out_path.read_text(encoding="utf-8"))
        assert data["records"]["100m"] == "10''55"
        assert "Profil exporté" in capsys.readouterr().out

    def test_athletes(self, ingested_db, capsys):
        capsys.readouterr()
        assert main(["athletes", "--db", str(ingested_db)]) == 0
        assert capsys.readouterr().out.startswith("123 | Jean Dupont | saison 2024 | 7 résultats")

    def test_unknown_athlete(self, ingested_db, capsys):
        capsys.readouterr()
        assert main(["records", "--athlete-id", "999", "--db", str(ingested_db)]) == 1
        assert "Athlète inconnu: 999" in capsys.readouterr().out

    def test_missing_db(self, tmp_path, capsys):
        assert main(["records", "--athlete-id", "123", "--db", str(tmp_path / "none.sqlite3")]) == 1
        assert "Base introuvable" in capsys.readouterr().out

    def test_ingest_without_cached_pages(self, tmp_path, capsys):
        rc = main(
            [
                "ingest",
                "--athlete-id",
                "555",
                "--pages-dir",
                str(tmp_path / "empty"),
                "--db",
                str(tmp_path / "profiles.sqlite3"),
                "--current-year",
                "2024",
            ]
        )
        out = capsys.readouterr().out
        assert rc == 0
        assert "Aucune page en cache" in out
        assert "2024_p1.html" in out
        assert "seq=555&annee=2024" in out
        assert "rows=0" in out


class TestReingest:
    def test_subset_of_years_keeps_stored_years(self, ingested_db, pages_dir, capsys):
        assert _ingest(pages_dir, ingested_db, "--years", "2024") == 0
        stored = _stored(ingested_db)
        assert stored.results_by_year.years() == [2023, 2024]
        assert len(stored.results_by_year.entries(2024, "100m")) == 3
        assert stored.records == {"100m": "10''55", "Décathlon": "7250 pts"}
        assert len(stored.performance_timeline) == 7
        assert "events=2" in capsys.readouterr().out

    def test_newer_pages_replace_that_year_only(self, ingested_db, tmp_path, capsys):
        fresh = tmp_path / "fresh"
        (fresh / "123").mkdir(parents=True)
        (fresh / "123" / page_filename(2024, 1)).write_text(
            results_page(result_row("1 sept.", "100m", "10''31", "+1,1", "Finale", "1", "N", "", "Reims")),
            encoding="utf-8",
        )
        assert _ingest(fresh, ingested_db) == 0
        stored = _stored(ingested_db)
        assert stored.results_by_year.years() == [2023, 2024]
        assert [e.performance for e in stored.results_by_year.entries(2024, "100m")] == ["10''31"]
        assert stored.records["100m"] == "10''31"
        assert stored.records["Décathlon"] == "7012 pts"
        capsys.readouterr()

    def test_nothing_read_leaves_stored_profile(self, ingested_db, tmp_path, capsys):
        capsys.readouterr()
        assert _ingest(tmp_path / "nowhere", ingested_db) == 0
        assert "conservé tel quel" in capsys.readouterr().out
        stored = _stored(ingested_db)
        assert stored.results_by_year.years() == [2023, 2024]
        assert stored.records == {"100m": "10''55", "Décathlon": "7250 pts"}


class TestImport:
    def test_import_into_empty_db(self, ingested_db, tmp_path, capsys):
        exported = tmp_path / "123.json"
        assert main(["export", "--athlete-id", "123", "--db", str(ingested_db), "--out", str(exported)]) == 0
        other_db = tmp_path / "other.sqlite3"
        capsys.readouterr()

        assert main(["import", "--json", str(exported), "--db", str(other_db)]) == 0
        assert "Profil importé: 123 | 7 résultats | 2 épreuves" in capsys.readouterr().out
        stored = _stored(other_db)
        original = _stored(ingested_db)
        assert stored.records == original.records
        assert stored.results_by_year == original.results_by_year
        assert stored.performance_timeline == original.performance_timeline

    def test_import_under_other_id(self, ingested_db, tmp_path, capsys):
        exported = tmp_path / "123.json"
        main(["export", "--athlete-id", "123", "--db", str(ingested_db), "--out", str(exported)])
        assert main(["import", "--json", str(exported), "--athlete-id", "777", "--db", str(ingested_db)]) == 0
        assert _stored(ingested_db, "777").records["100m"] == "10''55"
        assert _stored(ingested_db, "123") is not None
        capsys.readouterr()

    def test_missing_file(self, tmp_path, capsys):
        assert main(["import", "--json", str(tmp_path / "nope.json"), "--db", str(tmp_path / "db.sqlite3")]) == 1
        assert "Fichier introuvable" in capsys.readouterr().out

    def test_missing_athlete_id(self, tmp_path, capsys):
        path = tmp_path / "anon.json"
        path.write_text(json.dumps({"records": {}}), encoding="utf-8")
        assert main(["import", "--json", str(path), "--db", str(tmp_path / "db.sqlite3")]) == 1
        assert "Identifiant d'athlète absent" in capsys.readouterr().out
