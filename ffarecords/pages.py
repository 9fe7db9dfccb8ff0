from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path


_PAGE_FILE_RE = re.compile(r"^(?P<year>\d{4})_p(?P<page>\d+)\.html$")


def page_filename(year: int, page: int) -> str:
    return f"{int(year)}_p{int(page)}.html"


@dataclass(frozen=True)
class CachedPageSource:
    """Results pages saved by the fetch adapter, one file per (year, page).

    Layout: ``<cache_dir>/<athlete_id>/<year>_p<page>.html``.
    """

    cache_dir: Path
    athlete_id: str

    @property
    def athlete_dir(self) -> Path:
        return self.cache_dir / str(self.athlete_id)

    def fetch(self, year: int, page: int) -> bytes:
        path = self.athlete_dir / page_filename(year, page)
        if not path.exists():
            raise FileNotFoundError(f"Page introuvable: {path}")
        return path.read_bytes()

    def __call__(self, year: int, page: int) -> bytes:
        return self.fetch(year, page)

    def available_years(self) -> list[int]:
        if not self.athlete_dir.exists():
            return []
        years: set[int] = set()
        for path in self.athlete_dir.glob("*.html"):
            m = _PAGE_FILE_RE.match(path.name)
            if m:
                years.add(int(m.group("year")))
        return sorted(years, reverse=True)
