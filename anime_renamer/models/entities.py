from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class EpisodeType(str, Enum):
    NORMAL = "normal"
    OVA = "ova"
    OAD = "oad"
    SPECIAL = "special"
    MOVIE = "movie"


@dataclass(frozen=True)
class Match:
    value: int
    matched_text: str
    start: int  # span of the captured number, not of matched_text
    end: int
    season: Optional[int] = None  # only set by the S01E12 matcher


@dataclass(frozen=True)
class ParsedFile:
    anime_name: str
    episode_number: int
    season_number: Optional[int] = None
    episode_type: EpisodeType = EpisodeType.NORMAL
    tags: tuple[str, ...] = field(default_factory=tuple)
    extension: str = ""
    is_already_formatted: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "anime_name": self.anime_name,
            "episode_number": self.episode_number,
            "season_number": self.season_number,
            "episode_type": self.episode_type.value,
            "tags": list(self.tags),
            "extension": self.extension,
            "is_already_formatted": self.is_already_formatted,
        }


@dataclass(frozen=True)
class ParseFailure:
    filename: str
    reason: str


class SeasonDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    season_number: int  # 0 = specials
    episode_count: int = 0
    name: str = ""

    @field_validator("episode_count", "name", mode="before")
    @classmethod
    def _none_as_default(cls, v: Any, info) -> Any:
        if v is None:
            return 0 if info.field_name == "episode_count" else ""
        return v
