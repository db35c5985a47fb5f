from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

from anime_renamer.errors import ConfigurationError, MetadataLookupError
from anime_renamer.models.entities import SeasonDescriptor
from anime_renamer.settings import settings


class TvShow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    original_name: str = ""
    first_air_date: Optional[str] = None


class TvDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    original_name: str = ""
    number_of_seasons: int = 0
    seasons: list[SeasonDescriptor] = []


class TmdbEpisode(BaseModel):
    model_config = ConfigDict(extra="ignore")

    episode_number: int
    name: str = ""


class SeasonDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    season_number: int
    episodes: list[TmdbEpisode] = []


class TmdbClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.tmdb_api_key
        self.base_url = (base_url or settings.tmdb_base_url).rstrip("/")
        self._client = httpx.Client(
            timeout=timeout or settings.http_timeout_sec,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> TmdbClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _get_json(self, path: str, params: dict[str, Any], context: str) -> dict[str, Any]:
        if not self.api_key:
            raise ConfigurationError("TMDB_API_KEY not configured")

        url = f"{self.base_url}{path}"
        logger.debug("TMDB GET {} {}", path, params)
        try:
            resp = self._client.get(url, params={"api_key": self.api_key, **params})
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("{}: {}", context, exc)
            raise MetadataLookupError(f"{context}: {exc}") from exc

        if not isinstance(data, dict):
            raise MetadataLookupError(f"{context}: unexpected TMDB response payload")
        return data

    def search_tv(self, query: str, language: str | None = None) -> list[TvShow]:
        data = self._get_json(
            "/search/tv",
            {"query": query, "language": language or settings.language},
            "Failed to send search request",
        )
        try:
            return [TvShow.model_validate(x) for x in data.get("results") or []]
        except ValidationError as exc:
            raise MetadataLookupError(f"Failed to parse search response: {exc}") from exc

    def get_tv_details(self, tv_id: int, language: str | None = None) -> TvDetails:
        data = self._get_json(
            f"/tv/{tv_id}",
            {"language": language or settings.language},
            "Failed to send tv details request",
        )
        try:
            return TvDetails.model_validate(data)
        except ValidationError as exc:
            raise MetadataLookupError(f"Failed to parse tv details response: {exc}") from exc

    def get_season_details(self, tv_id: int, season_number: int, language: str | None = None) -> SeasonDetails:
        data = self._get_json(
            f"/tv/{tv_id}/season/{season_number}",
            {"language": language or settings.language},
            "Failed to send season details request",
        )
        try:
            return SeasonDetails.model_validate(data)
        except ValidationError as exc:
            raise MetadataLookupError(f"Failed to parse season details response: {exc}") from exc
