from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path
from typing import Union

from . import db as profiles_db
from .athle import build_results_url
from .config import default_db_path, default_export_dir, default_pages_dir
from .event_mapping import event_sort_key
from .export import read_profile_json, write_profile_json
from .ingest import ingest_athlete
from .pages import CachedPageSource, page_filename
from .profile import AthleteProfile, add_years
from .timeline import get_merged_by_event, get_timeline
from .util import format_value


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m ffarecords", description="Résultats FFA -> records, meilleures performances et historique")
    sub = parser.add_subparsers(dest="cmd", required=True)

    ingest = sub.add_parser("ingest", help="Importer les pages de résultats d'un athlète et calculer ses records")
    ingest.add_argument("--athlete-id", type=str, required=True, help="Identifiant athle.fr (seq) de l'athlète")
    ingest.add_argument("--name", type=str, default=None, help="Nom affiché de l'athlète")
    ingest.add_argument("--years", nargs="+", type=int, default=None, help="Saisons, p.ex. 2023 2024 2025 (défaut: toutes les pages en cache)")
    ingest.add_argument("--current-year", type=int, default=None, help="Saison courante pour la meilleure performance de l'année")
    ingest.add_argument("--pages-dir", type=Path, default=default_pages_dir(), help="Dossier des pages HTML déjà téléchargées")
    ingest.add_argument("--db", type=Path, default=default_db_path(), help="Fichier SQLite des profils")
    ingest.add_argument("--json", type=Path, default=None, help="Écrire aussi le profil en JSON")
    ingest.add_argument("--workers", type=int, default=1, help="Nombre de saisons traitées en parallèle")

    records = sub.add_parser("records", help="Afficher records et meilleures performances de la saison")
    records.add_argument("--athlete-id", type=str, required=True, help="Identifiant athle.fr (seq) de l'athlète")
    records.add_argument("--db", type=Path, default=default_db_path(), help="Fichier SQLite des profils")

    timeline = sub.add_parser("timeline", help="Afficher l'historique chronologique des performances")
    timeline.add_argument("--athlete-id", type=str, required=True, help="Identifiant athle.fr (seq) de l'athlète")
    timeline.add_argument("--discipline", type=str, default=None, help="Filtrer sur une épreuve, p.ex. 100m")
    timeline.add_argument("--merged", action="store_true", help="Reconstruire uniquement depuis la vue par épreuve")
    timeline.add_argument("--db", type=Path, default=default_db_path(), help="Fichier SQLite des profils")

    export = sub.add_parser("export", help="Exporter le profil d'un athlète en JSON")
    export.add_argument("--athlete-id", type=str, required=True, help="Identifiant athle.fr (seq) de l'athlète")
    export.add_argument("--db", type=Path, default=default_db_path(), help="Fichier SQLite des profils")
    export.add_argument("--out", type=Path, default=None, help="Fichier de sortie (défaut: data/export/<id>.json)")

    imp = sub.add_parser("import", help="Importer un profil JSON exporté dans la base")
    imp.add_argument("--json", type=Path, required=True, help="Fichier JSON produit par export")
    imp.add_argument("--athlete-id", type=str, default=None, help="Remplace l'identifiant lu dans le fichier")
    imp.add_argument("--db", type=Path, default=default_db_path(), help="Fichier SQLite des profils")

    athletes = sub.add_parser("athletes", help="Lister les athlètes enregistrés")
    athletes.add_argument("--db", type=Path, default=default_db_path(), help="Fichier SQLite des profils")

    args = parser.parse_args(argv)

    if args.cmd == "ingest":
        source = CachedPageSource(cache_dir=args.pages_dir, athlete_id=args.athlete_id)
        years = [int(y) for y in args.years] if args.years else source.available_years()
        if not years:
            print(f"Aucune page en cache pour l'athlète {args.athlete_id} dans {source.athlete_dir}")
            season = args.current_year or date.today().year
            expected = source.athlete_dir / page_filename(season, 1)
            print(f"Pages attendues: {expected} ({build_results_url(athlete_id=args.athlete_id, year=season)})")

        profile, res = ingest_athlete(
            athlete_id=args.athlete_id,
            fetch_page=source,
            years=years,
            name=args.name,
            current_year=args.current_year,
            max_workers=max(1, int(args.workers)),
        )

        profile = _merge_and_save(args.db, profile)

        if args.json is not None:
            write_profile_json(args.json, profile)

        print(
            "Import terminé:",
            f"years={','.join(str(y) for y in res.years_ingested) or '-'}",
            f"failed={','.join(str(y) for y in res.failed_years) or '-'}",
            f"pages={res.pages}",
            f"rows={res.rows}",
            f"events={len(profile.records)}",
            sep=" ",
        )
        return 0

    if args.cmd == "import":
        try:
            profile = read_profile_json(args.json)
        except FileNotFoundError as exc:
            print(exc)
            return 1
        if args.athlete_id:
            profile.athlete_id = args.athlete_id
        if not profile.athlete_id:
            print(f"Identifiant d'athlète absent de {args.json} (utiliser --athlete-id)")
            return 1
        profile = _merge_and_save(args.db, profile)
        print(f"Profil importé: {profile.athlete_id} | {profile.results_by_year.row_count()} résultats | {len(profile.records)} épreuves")
        return 0

    if args.cmd == "athletes":
        if not args.db.exists():
            print(f"Base introuvable: {args.db}")
            return 1
        con = profiles_db.connect(args.db)
        try:
            profiles_db.init_db(con)
            rows = profiles_db.list_athletes(con)
        finally:
            con.close()
        if not rows:
            print("Aucun athlète.")
            return 0
        for r in rows:
            print(f"{r['id']} | {r['name'] or '-'} | saison {r['current_year']} | {r['results']} résultats | {r['updated_at']}")
        return 0

    profile = _load_profile(args.db, args.athlete_id)
    if profile is None:
        return 1

    if args.cmd == "records":
        _print_records(profile)
        return 0

    if args.cmd == "timeline":
        points = (
            get_merged_by_event(profile, args.discipline)
            if args.merged
            else get_timeline(profile, args.discipline)
        )
        if not points:
            print("Aucune performance datée.")
            return 0
        for p in points:
            wind = "-" if p.wind is None else f"{p.wind:+.1f}"
            print(
                f"{p.date.date().isoformat()} | {p.discipline} | {_display_value(profile, p.discipline, p.value)} | {wind} | {p.meeting or '-'} | {p.notes or '-'}"
            )
        return 0

    if args.cmd == "export":
        out = args.out if args.out is not None else default_export_dir() / f"{args.athlete_id}.json"
        write_profile_json(out, profile)
        print(f"Profil exporté: {out}")
        return 0

    parser.error("Commande inconnue")
    return 2


def _merge_and_save(db_path: Path, profile: AthleteProfile) -> AthleteProfile:
    """Fold the profile's years into the stored one (if any) and save the result.

    Stored years that were not read again are kept. With no years at all the
    stored profile is left untouched.
    """
    con = profiles_db.connect(db_path)
    try:
        profiles_db.init_db(con)
        stored = profiles_db.load_profile(con, profile.athlete_id)
        if stored is not None:
            if not profile.results_by_year:
                print(f"Aucune saison lue: profil {profile.athlete_id} conservé tel quel")
                return stored
            stored.name = profile.name or stored.name
            profile = add_years(stored, profile.results_by_year, current_year=profile.current_year)
        profiles_db.save_profile(con, profile)
        con.commit()
    finally:
        con.close()
    return profile


def _load_profile(db_path: Path, athlete_id: str) -> AthleteProfile | None:
    if not db_path.exists():
        print(f"Base introuvable: {db_path}")
        return None
    con = profiles_db.connect(db_path)
    try:
        profiles_db.init_db(con)
        profile = profiles_db.load_profile(con, athlete_id)
    finally:
        con.close()
    if profile is None:
        print(f"Athlète inconnu: {athlete_id}")
    return profile


def _print_records(profile: AthleteProfile) -> None:
    by_event = profile.event_records()
    if not by_event:
        print("Aucun résultat.")
        return
    season = profile.current_year or date.today().year
    for key in sorted(by_event, key=lambda k: event_sort_key(by_event[k].label)):
        ev = by_event[key]
        rec = ev.record.entry if ev.record else None
        sb = ev.season_best.entry if ev.season_best else None
        rec_s = rec.raw_value if rec else "-"
        if rec is not None and not rec.legal:
            rec_s += " (vent favorable)"
        sb_s = sb.raw_value if sb else "-"
        print(f"{ev.label} [{ev.metric.value}] | record {rec_s} | saison {season}: {sb_s}")


def _display_value(profile: AthleteProfile, discipline: str, value: Union[float, str]) -> str:
    if isinstance(value, str):
        return value
    for key, kind in profile.metrics.items():
        if profile.merged_by_event.label(key) == discipline:
            return format_value(kind, value)
    return f"{value:g}"
