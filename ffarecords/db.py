from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable, Optional

from .athle import RawResultEntry
from .buckets import MergedBuckets, YearBuckets
from .dates import parse_iso_instant, to_iso
from .profile import AthleteProfile, Performance
from .timeline import TimelinePoint
from .util import MetricKind

SCHEMA_VERSION = 1

SCHEMA = """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    description TEXT
);

CREATE TABLE IF NOT EXISTS athletes (
    id TEXT PRIMARY KEY,
    name TEXT,
    current_year INTEGER NOT NULL,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS events (
    athlete_id TEXT NOT NULL REFERENCES athletes(id) ON DELETE CASCADE,
    event_key TEXT NOT NULL,
    metric TEXT NOT NULL CHECK(metric IN ('time','distance','points')),
    PRIMARY KEY (athlete_id, event_key)
);

CREATE TABLE IF NOT EXISTS raw_results (
    id INTEGER PRIMARY KEY,
    athlete_id TEXT NOT NULL REFERENCES athletes(id) ON DELETE CASCADE,
    bucket TEXT NOT NULL CHECK(bucket IN ('year','merged')),
    seq INTEGER NOT NULL,
    year INTEGER,
    event_key TEXT NOT NULL,
    event_label TEXT,
    result_date TEXT NOT NULL,
    performance TEXT NOT NULL,
    wind TEXT,
    round TEXT,
    placement TEXT,
    level TEXT,
    points TEXT,
    venue TEXT
);

CREATE INDEX IF NOT EXISTS idx_raw_results_athlete ON raw_results(athlete_id, bucket, seq);

CREATE TABLE IF NOT EXISTS records (
    athlete_id TEXT NOT NULL REFERENCES athletes(id) ON DELETE CASCADE,
    event_key TEXT NOT NULL,
    performance TEXT NOT NULL,
    points INTEGER,
    PRIMARY KEY (athlete_id, event_key)
);

CREATE TABLE IF NOT EXISTS performances (
    athlete_id TEXT NOT NULL REFERENCES athletes(id) ON DELETE CASCADE,
    seq INTEGER NOT NULL,
    epreuve TEXT NOT NULL,
    record TEXT,
    best_season TEXT,
    PRIMARY KEY (athlete_id, seq)
);

CREATE TABLE IF NOT EXISTS timeline_points (
    athlete_id TEXT NOT NULL REFERENCES athletes(id) ON DELETE CASCADE,
    seq INTEGER NOT NULL,
    discipline TEXT NOT NULL,
    point_date TEXT NOT NULL,
    value_num REAL,
    value_text TEXT,
    wind REAL,
    meeting TEXT,
    points INTEGER,
    notes TEXT,
    PRIMARY KEY (athlete_id, seq)
);
"""

_ATHLETE_TABLES = ("events", "raw_results", "records", "performances", "timeline_points")


def connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(db_path)
    con.row_factory = sqlite3.Row
    con.execute("PRAGMA foreign_keys = ON;")
    return con


def init_db(con: sqlite3.Connection) -> None:
    con.executescript(SCHEMA)
    row = con.execute("SELECT MAX(version) AS v FROM schema_version").fetchone()
    if row["v"] is None or row["v"] < SCHEMA_VERSION:
        con.execute(
            "INSERT INTO schema_version (version, description) VALUES (?, ?)",
            (SCHEMA_VERSION, "Athlete profiles: raw results, records, timeline"),
        )
    con.commit()


def upsert_athlete(*, con: sqlite3.Connection, athlete_id: str, name: Optional[str], current_year: int) -> None:
    norm_name = " ".join((name or "").split()) or None
    con.execute(
        """
        INSERT INTO athletes (id, name, current_year)
        VALUES (?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            name=COALESCE(excluded.name, athletes.name),
            current_year=excluded.current_year,
            updated_at=CURRENT_TIMESTAMP
        """,
        (athlete_id, norm_name, int(current_year)),
    )


def save_profile(con: sqlite3.Connection, profile: AthleteProfile) -> None:
    """Store a profile, replacing whatever was stored for the athlete before."""
    upsert_athlete(con=con, athlete_id=profile.athlete_id, name=profile.name, current_year=profile.current_year)
    for table in _ATHLETE_TABLES:
        con.execute(f"DELETE FROM {table} WHERE athlete_id = ?", (profile.athlete_id,))

    con.executemany(
        "INSERT INTO events (athlete_id, event_key, metric) VALUES (?, ?, ?)",
        [(profile.athlete_id, key, kind.value) for key, kind in profile.metrics.items()],
    )

    seq = 0
    for year, key, entries in profile.results_by_year.items():
        seq = _insert_entries(con, profile.athlete_id, "year", key, entries, start=seq, year=year)
    for key, entries in profile.merged_by_event.items():
        seq = _insert_entries(con, profile.athlete_id, "merged", key, entries, start=seq)

    con.executemany(
        "INSERT INTO records (athlete_id, event_key, performance, points) VALUES (?, ?, ?, ?)",
        [
            (profile.athlete_id, key, perf, profile.record_points.get(key))
            for key, perf in profile.records.items()
        ],
    )
    con.executemany(
        "INSERT INTO performances (athlete_id, seq, epreuve, record, best_season) VALUES (?, ?, ?, ?, ?)",
        [(profile.athlete_id, i, p.epreuve, p.record, p.best_season) for i, p in enumerate(profile.performances)],
    )
    con.executemany(
        """
        INSERT INTO timeline_points (
            athlete_id, seq, discipline, point_date, value_num, value_text, wind, meeting, points, notes
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (
                profile.athlete_id,
                i,
                p.discipline,
                to_iso(p.date),
                p.value if isinstance(p.value, float) else None,
                p.value if isinstance(p.value, str) else None,
                p.wind,
                p.meeting,
                p.points,
                p.notes,
            )
            for i, p in enumerate(profile.performance_timeline)
        ],
    )


def _insert_entries(
    con: sqlite3.Connection,
    athlete_id: str,
    bucket: str,
    key: str,
    entries: Iterable[RawResultEntry],
    *,
    start: int,
    year: Optional[int] = None,
) -> int:
    seq = start
    for e in entries:
        con.execute(
            """
            INSERT INTO raw_results (
                athlete_id, bucket, seq, year, event_key, event_label, result_date,
                performance, wind, round, placement, level, points, venue
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                athlete_id,
                bucket,
                seq,
                e.year if e.year is not None else year,
                key,
                e.event_label,
                e.date,
                e.performance,
                e.wind,
                e.round,
                e.placement,
                e.level,
                e.points,
                e.venue,
            ),
        )
        seq += 1
    return seq


def load_profile(con: sqlite3.Connection, athlete_id: str) -> Optional[AthleteProfile]:
    athlete = con.execute("SELECT id, name, current_year FROM athletes WHERE id = ?", (athlete_id,)).fetchone()
    if not athlete:
        return None

    by_year = YearBuckets()
    merged = MergedBuckets()
    rows = con.execute(
        "SELECT * FROM raw_results WHERE athlete_id = ? ORDER BY seq",
        (athlete_id,),
    ).fetchall()
    for r in rows:
        entry = RawResultEntry(
            date=r["result_date"],
            performance=r["performance"],
            wind=r["wind"],
            round=r["round"],
            placement=r["placement"],
            level=r["level"],
            points=r["points"],
            venue=r["venue"],
            year=r["year"],
            event_label=r["event_label"],
        )
        if r["bucket"] == "year":
            by_year.add_entries(int(r["year"]), r["event_key"], [entry])
        else:
            merged.extend(r["event_key"], [entry])

    metrics = {
        r["event_key"]: MetricKind(r["metric"])
        for r in con.execute("SELECT event_key, metric FROM events WHERE athlete_id = ?", (athlete_id,))
    }

    records: dict[str, str] = {}
    record_points: dict[str, int] = {}
    for r in con.execute("SELECT event_key, performance, points FROM records WHERE athlete_id = ?", (athlete_id,)):
        records[r["event_key"]] = r["performance"]
        if r["points"] is not None:
            record_points[r["event_key"]] = int(r["points"])

    performances = [
        Performance(epreuve=r["epreuve"], record=r["record"], best_season=r["best_season"])
        for r in con.execute(
            "SELECT epreuve, record, best_season FROM performances WHERE athlete_id = ? ORDER BY seq",
            (athlete_id,),
        )
    ]

    timeline: list[TimelinePoint] = []
    for r in con.execute("SELECT * FROM timeline_points WHERE athlete_id = ? ORDER BY seq", (athlete_id,)):
        instant = parse_iso_instant(r["point_date"])
        if instant is None:
            continue
        value = float(r["value_num"]) if r["value_num"] is not None else (r["value_text"] or "")
        timeline.append(
            TimelinePoint(
                discipline=r["discipline"],
                date=instant,
                value=value,
                wind=r["wind"],
                meeting=r["meeting"],
                points=r["points"],
                notes=r["notes"],
            )
        )

    return AthleteProfile(
        athlete_id=str(athlete["id"]),
        name=athlete["name"],
        current_year=int(athlete["current_year"]),
        results_by_year=by_year,
        merged_by_event=merged,
        metrics=metrics or merged.metrics(),
        records=records,
        record_points=record_points,
        performances=performances,
        performance_timeline=timeline,
    )


def list_athletes(con: sqlite3.Connection) -> list[sqlite3.Row]:
    return con.execute(
        """
        SELECT a.id, a.name, a.current_year, a.updated_at,
               (SELECT COUNT(*) FROM raw_results r WHERE r.athlete_id = a.id AND r.bucket = 'year') AS results
        FROM athletes a
        ORDER BY a.id
        """
    ).fetchall()
