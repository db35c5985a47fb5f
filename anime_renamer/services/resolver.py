from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from anime_renamer.models.entities import SeasonDescriptor


def map_episode_to_season(episode_no: int, seasons: Iterable[SeasonDescriptor]) -> tuple[int, int] | None:
    """Place an absolute episode number inside the season that contains it.

    ``seasons`` must be ordered by season number and must not contain the
    specials season (0); callers filter it out. Returns ``(season, episode)``
    or ``None`` when the number is past the last known episode.
    """
    accumulated = 0
    for season in seasons:
        if episode_no <= accumulated + season.episode_count:
            return season.season_number, episode_no - accumulated
        accumulated += season.episode_count
    return None


def split_seasons(seasons: Iterable[SeasonDescriptor]) -> tuple[list[SeasonDescriptor], SeasonDescriptor | None]:
    """Separate regular seasons (sorted) from the specials season."""
    regular: list[SeasonDescriptor] = []
    season_zero: SeasonDescriptor | None = None
    for s in seasons:
        if s.season_number == 0:
            season_zero = season_zero or s
        elif s.season_number > 0:
            regular.append(s)
    regular.sort(key=lambda s: s.season_number)
    return regular, season_zero


@dataclass
class SpecialNumbering:
    """Season 0 numbering for OVA/OAD/Special items of one batch.

    With a specials season upstream, items are numbered 1, 2, 3... in the order
    they are assigned, ignoring the number in their filename. Without one, the
    parsed number is kept.
    """

    has_season_zero: bool
    counter: int = 1

    def assign(self, parsed_episode: int) -> tuple[int, int]:
        episode = self.counter if self.has_season_zero else parsed_episode
        self.counter += 1
        return 0, episode
