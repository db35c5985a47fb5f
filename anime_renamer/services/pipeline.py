from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from anime_renamer.models.entities import EpisodeType, ParsedFile, ParseFailure, SeasonDescriptor
from anime_renamer.services.anilist import AniListClient, Media
from anime_renamer.services.organizer import RenameEntry, RenameOptions, build_entry
from anime_renamer.services.parser import FileParser, extract_tmdb_id
from anime_renamer.services.resolver import SpecialNumbering, map_episode_to_season, split_seasons
from anime_renamer.services.tmdb import TmdbClient
from anime_renamer.settings import settings


@dataclass
class ParseBatch:
    parsed: list[tuple[Path, ParsedFile]] = field(default_factory=list)
    failures: list[ParseFailure] = field(default_factory=list)
    already_formatted: list[Path] = field(default_factory=list)


@dataclass
class SeriesMatch:
    source: str  # tmdb|anilist
    display_name: str
    tmdb_id: Optional[int] = None
    first_air_date: Optional[str] = None
    seasons: list[SeasonDescriptor] = field(default_factory=list)
    media: Optional[Media] = None


@dataclass
class UnresolvedItem:
    source: Path
    episode: int


@dataclass
class RenamePlan:
    entries: list[RenameEntry] = field(default_factory=list)
    unresolved: list[UnresolvedItem] = field(default_factory=list)
    skipped_movies: list[Path] = field(default_factory=list)


def parse_files(paths: Iterable[Path], parser: FileParser | None = None) -> ParseBatch:
    parser = parser or FileParser()
    batch = ParseBatch()
    for p in paths:
        result = parser.parse_detailed(p.name)
        if isinstance(result, ParseFailure):
            logger.info("cannot parse {}: {}", p.name, result.reason)
            batch.failures.append(result)
            continue
        # Files already named "Title S01E02" are left alone
        if result.is_already_formatted:
            batch.already_formatted.append(p)
            continue
        batch.parsed.append((p, result))
    return batch


def detect_series_name(batch: ParseBatch, override: str | None = None) -> str | None:
    if override and override.strip():
        return override.strip()
    if not batch.parsed:
        return None
    return batch.parsed[0][1].anime_name


def _tmdb_match(tmdb: TmdbClient, tv_id: int, language: str, name: str | None = None, first_air_date: str | None = None) -> SeriesMatch:
    details = tmdb.get_tv_details(tv_id, language)
    return SeriesMatch(
        source="tmdb",
        display_name=name or details.name,
        tmdb_id=details.id,
        first_air_date=first_air_date,
        seasons=list(details.seasons),
    )


def find_series(
    name: str,
    path: str | Path = "",
    language: str | None = None,
    *,
    use_anilist: bool = False,
    tmdb: TmdbClient | None = None,
    anilist: AniListClient | None = None,
) -> SeriesMatch | None:
    """Look the series up: TMDB id in the path, then TMDB search, then AniList."""
    language = language or settings.language
    own_tmdb = tmdb is None
    own_anilist = anilist is None
    tmdb = tmdb or TmdbClient()
    anilist = anilist or AniListClient()
    try:
        tv_id = extract_tmdb_id(str(path))
        if tv_id is not None:
            logger.info("TMDB id {} found in path, skipping search", tv_id)
            return _tmdb_match(tmdb, tv_id, language)

        if not use_anilist and not tmdb.api_key:
            logger.warning("TMDB_API_KEY not configured, using AniList")
            use_anilist = True

        if not use_anilist:
            results = tmdb.search_tv(name, language)
            if results:
                show = results[0]
                return _tmdb_match(tmdb, show.id, language, name=show.name, first_air_date=show.first_air_date)
            logger.info("no TMDB result for {!r}, trying AniList", name)

        media = anilist.search_anime(name)
        if not media:
            return None
        best = media[0]
        return SeriesMatch(
            source="anilist",
            display_name=best.display_title(),
            first_air_date=best.format_date(),
            media=best,
        )
    finally:
        if own_tmdb:
            tmdb.close()
        if own_anilist:
            anilist.close()


def plan_with_seasons(
    items: Iterable[tuple[Path, ParsedFile]],
    display_name: str,
    seasons: Iterable[SeasonDescriptor],
    options: RenameOptions | None = None,
) -> RenamePlan:
    options = options or RenameOptions()
    regular, season_zero = split_seasons(seasons)
    numbering = SpecialNumbering(has_season_zero=season_zero is not None)
    plan = RenamePlan()

    for src, parsed in items:
        if parsed.episode_type is EpisodeType.MOVIE:
            logger.info("skipping movie {}", src.name)
            plan.skipped_movies.append(src)
            continue

        if parsed.episode_type is EpisodeType.NORMAL:
            if parsed.season_number is not None:
                # An explicit season in the filename wins over absolute numbering
                season, ep_no = parsed.season_number, parsed.episode_number
            else:
                mapped = map_episode_to_season(parsed.episode_number, regular)
                if mapped is None:
                    logger.warning("cannot map episode {} of {} to any season", parsed.episode_number, src.name)
                    plan.unresolved.append(UnresolvedItem(source=src, episode=parsed.episode_number))
                    continue
                season, ep_no = mapped
        else:
            season, ep_no = numbering.assign(parsed.episode_number)

        plan.entries.append(build_entry(src, display_name, season, ep_no, parsed, options))

    return plan


def plan_from_filenames(
    items: Iterable[tuple[Path, ParsedFile]],
    display_name: str,
    options: RenameOptions | None = None,
) -> RenamePlan:
    """Plan without upstream season data: trust the season written in the filename."""
    options = options or RenameOptions()
    plan = RenamePlan()

    for src, parsed in items:
        if parsed.episode_type is EpisodeType.MOVIE:
            logger.info("skipping movie {}", src.name)
            plan.skipped_movies.append(src)
            continue
        if parsed.episode_type is EpisodeType.NORMAL:
            season = parsed.season_number if parsed.season_number is not None else 1
        else:
            season = 0
        plan.entries.append(build_entry(src, display_name, season, parsed.episode_number, parsed, options))

    return plan


def build_plan(batch: ParseBatch, series: SeriesMatch, options: RenameOptions | None = None, display_name: str | None = None) -> RenamePlan:
    name = display_name or series.display_name
    if series.source == "tmdb":
        return plan_with_seasons(batch.parsed, name, series.seasons, options)
    return plan_from_filenames(batch.parsed, name, options)
