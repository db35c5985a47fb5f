from __future__ import annotations

import argparse

from loguru import logger

from anime_renamer.errors import AnimeRenamerError
from anime_renamer.log_setup import setup_logging
from anime_renamer.services.organizer import RenameOptions, execute_plan
from anime_renamer.services.parser import FileParser
from anime_renamer.services.pipeline import (
    RenamePlan,
    SeriesMatch,
    build_plan,
    detect_series_name,
    find_series,
    parse_files,
)
from anime_renamer.services.scanner import scan_video_files
from anime_renamer.settings import settings


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anime-renamer",
        description="Rename anime release files to 'Title SxxEyy' using TMDB/AniList metadata",
    )
    parser.add_argument("path", help="Directory to scan")
    parser.add_argument("-r", "--recursive", action="store_true", help="Scan subdirectories too")
    parser.add_argument("-n", "--dry-run", action="store_true", help="Preview only, do not rename")
    parser.add_argument("--name", help="Series name to search for (skips detection)")
    parser.add_argument("-l", "--language", default=settings.language, help="Metadata language")
    parser.add_argument("--keep-tags", action="store_true", help="Keep bracket tags in new names")
    parser.add_argument("--season-folders", action="store_true", help="Move files into 'Season N' folders")
    parser.add_argument("--use-anilist", action="store_true", help="Use AniList instead of TMDB")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _choose_title(series: SeriesMatch) -> str:
    options = series.media.title_options() if series.media else []
    if not options:
        return series.display_name

    print("\nSeries found, choose the title to use:")
    for i, (title, label) in enumerate(options, start=1):
        print(f"  [{i}] {title} ({label})")
    answer = input(f"\nEnter a number [1-{len(options)}] or a custom name: ").strip()

    if answer.isdigit():
        choice = int(answer)
        if 1 <= choice <= len(options):
            return options[choice - 1][0]
        print("Invalid choice, using the first option")
        return options[0][0]
    if answer:
        return answer
    return options[0][0]


def _print_preview(plan: RenamePlan) -> None:
    print("Rename preview:\n")
    for i, entry in enumerate(plan.entries, start=1):
        print(f"[{i}] S{entry.season:02d}E{entry.episode:02d}")
        print(f"  from: {entry.source.name}")
        try:
            shown = entry.target.relative_to(entry.source.parent)
        except ValueError:
            shown = entry.target
        print(f"  to:   {shown}\n")

    for item in plan.unresolved:
        print(f"Cannot map episode {item.episode} to any season: {item.source.name}")
    for p in plan.skipped_movies:
        print(f"Skipped movie: {p.name}")


def _confirm() -> bool:
    answer = input("Continue renaming? [Y/n] ").strip()
    return not answer or answer.lower() == "y"


def run(args: argparse.Namespace) -> int:
    print(f"Scanning: {args.path}")
    files = scan_video_files(args.path, recursive=args.recursive)
    if not files:
        print("No video files found")
        return 0
    print(f"Found {len(files)} video files\n")

    batch = parse_files(files, FileParser())
    for failure in batch.failures:
        print(f"Cannot parse: {failure.filename}")
    if batch.already_formatted:
        print(f"Skipped {len(batch.already_formatted)} already formatted files\n")
    if not batch.parsed:
        print("No parseable files")
        return 0

    name = detect_series_name(batch, args.name)
    print(f"Detected series: {name}")

    series = find_series(name, args.path, args.language, use_anilist=args.use_anilist)
    if series is None:
        print("No matching series found")
        return 0

    display_name = series.display_name
    if series.source == "anilist":
        display_name = _choose_title(series)
        print(f"Matched: {display_name} ({series.first_air_date})")
        print("\nNote: AniList has no season data, the season written in each filename is used")
        print("Files without a season marker (e.g. 'V', 'Season 5') go to season 1\n")
    else:
        print(f"Matched: {display_name} (TMDB {series.tmdb_id}, {series.first_air_date or 'unknown'})")
        regular = [s for s in series.seasons if s.season_number > 0]
        print(f"{len(regular)} seasons, mapping episodes...\n")

    plan = build_plan(batch, series, RenameOptions(keep_tags=args.keep_tags, season_folders=args.season_folders), display_name)
    _print_preview(plan)

    if not plan.entries:
        print("Nothing to rename")
        return 0
    if args.dry_run:
        print("Dry run, nothing renamed")
        return 0
    if not _confirm():
        print("Cancelled")
        return 0

    res = execute_plan(plan.entries)
    print(f"\nRenamed {res['renamed']} files")
    for f in res["failed"]:
        print(f"Failed: {f['source']} - {f['error']}")
    return 0 if res["ok"] else 1


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)
    try:
        return run(args)
    except AnimeRenamerError as exc:
        logger.error("{}", exc)
        print(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
