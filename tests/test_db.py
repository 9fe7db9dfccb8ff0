from __future__ import annotations

from ffarecords import db as profiles_db


def _save(path, profile):
    con = profiles_db.connect(path)
    try:
        profiles_db.init_db(con)
        profiles_db.save_profile(con, profile)
        con.commit()
    finally:
        con.close()


def _load(path, athlete_id):
    con = profiles_db.connect(path)
    try:
        profiles_db.init_db(con)
        return profiles_db.load_profile(con, athlete_id)
    finally:
        con.close()


class TestProfileStorage:
    def test_round_trip(self, tmp_path, sample_profile):
        path = tmp_path / "profiles.sqlite3"
        _save(path, sample_profile)
        loaded = _load(path, "123")

        assert loaded is not None
        assert loaded.name == "Jean Dupont"
        assert loaded.current_year == 2024
        assert loaded.results_by_year == sample_profile.results_by_year
        assert loaded.merged_by_event == sample_profile.merged_by_event
        assert loaded.metrics == sample_profile.metrics
        assert loaded.records == sample_profile.records
        assert loaded.record_points == sample_profile.record_points
        assert loaded.performances == sample_profile.performances
        assert loaded.performance_timeline == sample_profile.performance_timeline

    def test_save_replaces_previous_rows(self, tmp_path, sample_profile):
        path = tmp_path / "profiles.sqlite3"
        _save(path, sample_profile)
        _save(path, sample_profile)

        con = profiles_db.connect(path)
        try:
            rows = profiles_db.list_athletes(con)
            timeline = con.execute("SELECT COUNT(*) AS n FROM timeline_points").fetchone()["n"]
        finally:
            con.close()
        assert [r["id"] for r in rows] == ["123"]
        assert rows[0]["results"] == 7
        assert timeline == 7

    def test_unknown_athlete(self, tmp_path):
        assert _load(tmp_path / "profiles.sqlite3", "999") is None

    def test_init_is_idempotent(self, tmp_path):
        con = profiles_db.connect(tmp_path / "profiles.sqlite3")
        try:
            profiles_db.init_db(con)
            profiles_db.init_db(con)
            versions = con.execute("SELECT COUNT(*) AS n FROM schema_version").fetchone()["n"]
        finally:
            con.close()
        assert versions == 1
