from __future__ import annotations

from pathlib import PurePath
import re

from loguru import logger

from anime_renamer.models.entities import EpisodeType, Match, ParsedFile, ParseFailure
from anime_renamer.services.matchers import MatcherChain, episode_chain, season_chain

TAG_RE = re.compile(r"\[([^\]]+)\]")
RESOLUTION_TAG_RE = re.compile(r"\[(1080|720|480|2160|4K)[^\]]*\]")
ALREADY_FORMATTED_RE = re.compile(r"\s+S\d{2}E\d{2}\s*")
PAREN_RE = re.compile(r"\([^)]*\)")
SPACE_RE = re.compile(r"\s+")

# Order matters: the first rule that hits decides the type.
SPECIAL_KEYWORDS: tuple[tuple[re.Pattern[str], EpisodeType], ...] = (
    (re.compile(r"剧场版|theater|theatrical|movie|gekijouban|gekijōban", re.IGNORECASE), EpisodeType.MOVIE),
    (re.compile(r"\bOAD\b", re.IGNORECASE), EpisodeType.OAD),
    (re.compile(r"\bOVA\b", re.IGNORECASE), EpisodeType.OVA),
    (re.compile(r"\bSP\b|special|特典|特別|番外|总集篇|总集編", re.IGNORECASE), EpisodeType.SPECIAL),
)

SEASON_CLEANUP = (
    re.compile(r"[Ss]eason\s*\d{1,2}"),
    re.compile(r"第\s*\d{1,2}\s*季"),
    re.compile(r"\b[IVX]+\b"),
    re.compile(r"[Ss]\d{1,2}(?:\s|[\]\[]|$)"),
    re.compile(r"_[Ss]\d{1,4}"),
)

RESOLUTION_MARKERS = ("1080", "720", "480", "2160", "4K")
SUBGROUP_MARKERS = ("字幕", "新番")
TRIM_CHARS = "-_."
U32_MAX = 0xFFFFFFFF

TMDB_ID_RE = re.compile(r"tmdb(?:id)?\s*[=\-_:]\s*(\d+)", re.IGNORECASE)


def extract_tmdb_id(path: str) -> int | None:
    """Find a TMDB id embedded in a path, e.g. ``Frieren {tmdb-209867}`` or ``[tmdbid=209867]``."""
    m = TMDB_ID_RE.search(path)
    if not m:
        return None
    return int(m.group(1))


def detect_episode_type(text: str) -> EpisodeType:
    for pattern, episode_type in SPECIAL_KEYWORDS:
        if pattern.search(text):
            return episode_type
    return EpisodeType.NORMAL


def _is_resolution_tag(tag: str) -> bool:
    return any(r in tag for r in RESOLUTION_MARKERS)


def _is_episode_tag(tag: str) -> bool:
    return tag.isascii() and tag.isdigit() and int(tag) <= U32_MAX and not _is_resolution_tag(tag)


def _byte_len(s: str) -> int:
    return len(s.encode("utf-8", "surrogatepass"))


def _title_from_tags(tags: list[str], episode_idx: int, stem: str) -> str:
    # Release metadata tags are short; the series title is the longest meaningful one (in UTF-8 bytes).
    candidates = [
        t
        for t in tags[:episode_idx]
        if not any(sg in t for sg in SUBGROUP_MARKERS)
        and not _is_resolution_tag(t)
        and _byte_len(t) > 2
    ]
    if candidates:
        # max() keeps the first of equally long tags
        return max(candidates, key=_byte_len)
    if episode_idx > 0:
        return " ".join(tags[:episode_idx])
    return stem


def _strip_episode_text(stem: str, matched_text: str) -> str:
    remove = matched_text
    if matched_text.endswith("("):
        # "- 04(28)": drop the total-count annotation with the episode number
        start = stem.find(matched_text)
        close = stem.find(")", start + len(matched_text))
        if start >= 0 and close >= 0:
            remove = stem[start : close + 1]
    return stem.replace(remove, " ")


def _clean_once(name: str) -> str:
    name = TAG_RE.sub("", name)
    for pattern, _ in SPECIAL_KEYWORDS:
        name = pattern.sub(" ", name)
    for pattern in SEASON_CLEANUP:
        name = pattern.sub(" ", name)
    name = PAREN_RE.sub(" ", name)

    # Anything after a colon is an episode subtitle
    for colon in ("：", ":"):
        pos = name.find(colon)
        if pos >= 0:
            name = name[:pos]

    name = name.strip().strip(TRIM_CHARS).strip()
    return SPACE_RE.sub(" ", name).strip()


def clean_anime_name(name: str) -> str:
    """Reduce a raw title candidate to the bare series name.

    Runs until the result stops changing, so cleaning a cleaned title is a no-op.
    """
    while True:
        cleaned = _clean_once(name)
        if cleaned == name:
            return cleaned
        name = cleaned


class FileParser:
    """Turns a release filename into a :class:`ParsedFile`.

    The season is extracted first; its span, together with every resolution tag,
    is excluded from the episode search so "S3" or "[1080p]" can never be read as
    the episode number. Instances hold only compiled patterns and can be shared.
    """

    def __init__(
        self,
        seasons: MatcherChain | None = None,
        episodes: MatcherChain | None = None,
    ) -> None:
        self.season_chain = seasons or season_chain()
        self.episode_chain = episodes or episode_chain()

    def extract_season(self, text: str) -> Match | None:
        hit = self.season_chain.execute_with_matcher(text)
        if not hit:
            return None
        result, matcher = hit
        logger.debug("season {} from {} in {!r}", result.value, matcher.name, text)
        return result

    def episode_exclusions(self, text: str, season: Match | None) -> list[tuple[int, int]]:
        exclusions: list[tuple[int, int]] = []
        if season is not None:
            exclusions.append((season.start, season.end))
        for m in RESOLUTION_TAG_RE.finditer(text):
            exclusions.append((m.start(), m.end()))
        return exclusions

    def extract_episode(self, text: str, season: Match | None = None) -> Match | None:
        hit = self.episode_chain.execute_with_matcher(text, self.episode_exclusions(text, season))
        if not hit:
            return None
        result, matcher = hit
        logger.debug("episode {} from {} in {!r}", result.value, matcher.name, text)
        return result

    def parse_detailed(self, filename: str) -> ParsedFile | ParseFailure:
        path = PurePath(filename)
        stem = path.stem
        extension = path.suffix[1:] if path.suffix else ""
        if not stem:
            return ParseFailure(filename=filename, reason="empty filename")

        tags = [m.group(1) for m in TAG_RE.finditer(stem)]
        episode_type = detect_episode_type(stem)
        is_already_formatted = bool(ALREADY_FORMATTED_RE.search(stem))

        season = self.extract_season(stem)
        episode = self.extract_episode(stem, season)
        if episode is None:
            return ParseFailure(filename=filename, reason="no episode number")

        season_number = season.value if season else None
        if episode.season is not None:
            season_number = episode.season

        episode_idx = next((i for i, t in enumerate(tags) if _is_episode_tag(t)), None)
        if episode_idx is not None:
            raw_name = _title_from_tags(tags, episode_idx, stem)
        else:
            raw_name = _strip_episode_text(stem, episode.matched_text)

        anime_name = clean_anime_name(raw_name)
        if not anime_name:
            return ParseFailure(filename=filename, reason="empty title")

        return ParsedFile(
            anime_name=anime_name,
            episode_number=episode.value,
            season_number=season_number,
            episode_type=episode_type,
            tags=tuple(tags),
            extension=extension,
            is_already_formatted=is_already_formatted,
        )

    def parse(self, filename: str) -> ParsedFile | None:
        result = self.parse_detailed(filename)
        if isinstance(result, ParseFailure):
            logger.debug("unparsed {!r}: {}", filename, result.reason)
            return None
        return result
