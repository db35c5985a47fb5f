from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from anime_renamer.errors import MetadataLookupError
from anime_renamer.settings import settings

_MEDIA_FIELDS = """
    id
    title { romaji english native }
    startDate { year month day }
    format
    episodes
"""

SEARCH_QUERY = (
    """
query ($search: String) {
  Page(page: 1, perPage: 10) {
    media(search: $search, type: ANIME, sort: POPULARITY_DESC) {"""
    + _MEDIA_FIELDS
    + """    }
  }
}
"""
)

BY_ID_QUERY = (
    """
query ($id: Int) {
  Media(id: $id, type: ANIME) {"""
    + _MEDIA_FIELDS
    + """  }
}
"""
)


class Title(BaseModel):
    romaji: Optional[str] = None
    english: Optional[str] = None
    native: Optional[str] = None


class FuzzyDate(BaseModel):
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None


class Media(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    title: Title = Field(default_factory=Title)
    start_date: Optional[FuzzyDate] = Field(default=None, alias="startDate")
    format: Optional[str] = None
    episodes: Optional[int] = None

    def display_title(self, prefer_english: bool = False) -> str:
        if prefer_english and self.title.english:
            return self.title.english
        for t in (self.title.native, self.title.romaji, self.title.english):
            if t:
                return t
        return "Unknown"

    def title_options(self) -> list[tuple[str, str]]:
        """(title, label) pairs in the order they are offered to the user."""
        out: list[tuple[str, str]] = []
        for value, label in (
            (self.title.native, "native"),
            (self.title.romaji, "romaji"),
            (self.title.english, "english"),
        ):
            if value:
                out.append((value, label))
        return out

    def format_date(self) -> str:
        d = self.start_date
        if d and d.year is not None:
            if d.month is not None and d.day is not None:
                return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"
            if d.month is not None:
                return f"{d.year:04d}-{d.month:02d}"
            return f"{d.year}"
        return "unknown"


class AniListClient:
    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url or settings.anilist_url
        self._client = httpx.Client(
            timeout=timeout or settings.http_timeout_sec,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": "anime-renamer/0.1",
            },
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> AniListClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _post_graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        logger.debug("AniList query {}", variables)
        try:
            resp = self._client.post(self.url, json={"query": query, "variables": variables})
            resp.raise_for_status()
            obj = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("AniList request failed: {}", exc)
            raise MetadataLookupError(f"Failed to send AniList request: {exc}") from exc
        if not isinstance(obj, dict):
            raise MetadataLookupError("Failed to parse AniList response: unexpected payload")
        return obj

    def search_anime(self, query: str) -> list[Media]:
        obj = self._post_graphql(SEARCH_QUERY, {"search": query})
        media = (((obj.get("data") or {}).get("Page") or {}).get("media") or [])
        try:
            return [Media.model_validate(m) for m in media]
        except ValidationError as exc:
            raise MetadataLookupError(f"Failed to parse AniList response: {exc}") from exc

    def get_anime_by_id(self, media_id: int) -> Media | None:
        obj = self._post_graphql(BY_ID_QUERY, {"id": media_id})
        media = (obj.get("data") or {}).get("Media")
        if not media:
            return None
        try:
            return Media.model_validate(media)
        except ValidationError as exc:
            raise MetadataLookupError(f"Failed to parse AniList response: {exc}") from exc
