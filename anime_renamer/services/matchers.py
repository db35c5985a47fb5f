from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from typing import Iterable

from anime_renamer.models.entities import Match


class MatcherKind(str, Enum):
    SEASON_NUMBER = "season_number"
    SEASON_WORD = "season_word"
    SEASON_CHINESE = "season_chinese"
    SEASON_ROMAN = "season_roman"
    EPISODE_SXEY = "episode_sxey"
    EPISODE_CHINESE = "episode_chinese"
    EPISODE_EP = "episode_ep"
    EPISODE_E = "episode_e"
    EPISODE_BRACKET = "episode_bracket"
    EPISODE_UNDERSCORE_S = "episode_underscore_s"
    EPISODE_DELIMITER = "episode_delimiter"


ROMAN_NUMERALS = {
    "I": 1,
    "II": 2,
    "III": 3,
    "IV": 4,
    "V": 5,
    "VI": 6,
    "VII": 7,
    "VIII": 8,
    "IX": 9,
    "X": 10,
}


@dataclass(frozen=True)
class PatternMatcher:
    """One regex-backed rule that finds a number of a specific shape.

    ``group`` is the capture holding the number; the match span reported to the
    chain is the span of that group so exclusions can be checked precisely.
    """

    kind: MatcherKind
    name: str
    priority: int
    pattern: re.Pattern[str]
    group: int = 1

    def attempt(self, text: str) -> Match | None:
        """The leftmost match of this shape, or ``None``."""
        m = self.pattern.search(text)
        if not m:
            return None
        if self.kind is MatcherKind.SEASON_ROMAN:
            return self._roman(text, m)

        season = int(m.group(1)) if self.kind is MatcherKind.EPISODE_SXEY else None
        return Match(
            value=int(m.group(self.group)),
            matched_text=m.group(0),
            start=m.start(self.group),
            end=m.end(self.group),
            season=season,
        )

    @staticmethod
    def _roman(text: str, m: re.Match[str]) -> Match | None:
        value = ROMAN_NUMERALS.get(m.group(1).upper())
        if value is None:
            return None
        start = m.start(1)
        # "IV" inside "Re:ZERO-IV" is not a season marker
        if start > 0 and not (text[start - 1].isspace() or text[start - 1] in "[]"):
            return None
        return Match(value=value, matched_text=m.group(1), start=start, end=m.end(1))


def _matcher(kind: MatcherKind, name: str, priority: int, pattern: str, group: int = 1) -> PatternMatcher:
    return PatternMatcher(kind=kind, name=name, priority=priority, pattern=re.compile(pattern), group=group)


SEASON_MATCHERS: tuple[PatternMatcher, ...] = (
    _matcher(MatcherKind.SEASON_NUMBER, "SeasonNumber(S3)", 1, r"[Ss](\d{1,2})(?:\s|[\]\[]|$)"),
    _matcher(MatcherKind.SEASON_WORD, "SeasonWord(Season 3)", 2, r"[Ss]eason\s*(\d{1,2})"),
    _matcher(MatcherKind.SEASON_CHINESE, "ChineseSeason(第3季)", 3, r"第\s*(\d{1,2})\s*季"),
    _matcher(MatcherKind.SEASON_ROMAN, "RomanSeason(IV)", 10, r"\b([IVX]+)\b"),
)

EPISODE_MATCHERS: tuple[PatternMatcher, ...] = (
    _matcher(MatcherKind.EPISODE_SXEY, "SxEy(S01E12)", 1, r"[Ss](\d{1,2})[Ee](\d{1,4})", group=2),
    _matcher(MatcherKind.EPISODE_CHINESE, "ChineseEpisode(第01集)", 2, r"第\s*(\d{1,4})\s*(?:集|话|話)"),
    _matcher(MatcherKind.EPISODE_EP, "Ep(EP01)", 3, r"[Ee][Pp]\s*(\d{1,4})"),
    _matcher(MatcherKind.EPISODE_E, "E(E220)", 4, r"[Ee](\d{1,4})(?:\D|$)"),
    _matcher(MatcherKind.EPISODE_BRACKET, "Bracket([01])", 5, r"\[(\d{1,4})\]"),
    _matcher(MatcherKind.EPISODE_UNDERSCORE_S, "UnderscoreS(_S001)", 6, r"_[Ss](\d{1,4})"),
    # Catch-all: only wins when every structured form above is absent.
    _matcher(MatcherKind.EPISODE_DELIMITER, "Delimiter(- 04)", 20, r"[\s\-_\.：:]+(\d{1,4})(?:\D|$)"),
)


def _overlaps(m: Match, exclusions: Iterable[tuple[int, int]]) -> bool:
    return any(m.start < end and m.end > start for start, end in exclusions)


class MatcherChain:
    """Priority-ordered matchers for one field; the first non-excluded hit wins."""

    def __init__(self, matchers: Iterable[PatternMatcher] = ()) -> None:
        self._matchers: list[PatternMatcher] = []
        for m in matchers:
            self.add(m)

    def add(self, matcher: PatternMatcher) -> MatcherChain:
        self._matchers.append(matcher)
        # list.sort is stable: equal priorities keep insertion order
        self._matchers.sort(key=lambda m: m.priority)
        return self

    @property
    def matchers(self) -> tuple[PatternMatcher, ...]:
        return tuple(self._matchers)

    def execute_with_matcher(
        self,
        text: str,
        exclusions: Iterable[tuple[int, int]] = (),
    ) -> tuple[Match, PatternMatcher] | None:
        excluded = list(exclusions)
        for matcher in self._matchers:
            result = matcher.attempt(text)
            if result is not None and not _overlaps(result, excluded):
                return result, matcher
        return None

    def execute(self, text: str, exclusions: Iterable[tuple[int, int]] = ()) -> Match | None:
        hit = self.execute_with_matcher(text, exclusions)
        return hit[0] if hit else None


def season_chain() -> MatcherChain:
    return MatcherChain(SEASON_MATCHERS)


def episode_chain() -> MatcherChain:
    return MatcherChain(EPISODE_MATCHERS)
