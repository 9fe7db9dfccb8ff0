from __future__ import annotations

from pathlib import Path


ATHLE_RESULTS_URL = "https://www.athle.fr/ajax/fiche-athlete-resultats.aspx"

# A results row carries: date, epreuve, perf, vent, tour, place, niveau, points, lieu.
MIN_ROW_CELLS = 9

# Wind above this reading (m/s) makes a mark wind-assisted.
WIND_LEGAL_LIMIT = 2.0

# Parsed values under this many seconds are taken as times when nothing else decides.
TIME_FALLBACK_MAX_SECONDS = 20 * 60

# Date-only results are pinned to noon UTC.
NOON_HOUR = 12


def default_data_dir() -> Path:
    return Path("data")


def default_db_path() -> Path:
    return default_data_dir() / "ffa_records.sqlite3"


def default_pages_dir() -> Path:
    return default_data_dir() / "cache" / "athle"


def default_export_dir() -> Path:
    return default_data_dir() / "export"
