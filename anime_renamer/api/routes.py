from fastapi import APIRouter
from pydantic import BaseModel

from anime_renamer.models.entities import ParseFailure, SeasonDescriptor
from anime_renamer.services.parser import FileParser
from anime_renamer.services.resolver import map_episode_to_season, split_seasons

router = APIRouter()

_parser = FileParser()


class ParseReq(BaseModel):
    filenames: list[str]


class ResolveReq(BaseModel):
    episode: int
    seasons: list[SeasonDescriptor]


@router.post("/parse")
def parse_filenames(payload: ParseReq):
    items = []
    parsed = 0
    for name in payload.filenames:
        result = _parser.parse_detailed(name)
        if isinstance(result, ParseFailure):
            items.append({"filename": name, "ok": False, "reason": result.reason})
            continue
        parsed += 1
        items.append({"filename": name, "ok": True, "parsed": result.as_dict()})
    return {"ok": True, "count": len(items), "parsed": parsed, "items": items}


@router.post("/resolve")
def resolve_episode(payload: ResolveReq):
    regular, _ = split_seasons(payload.seasons)
    mapped = map_episode_to_season(payload.episode, regular)
    if mapped is None:
        return {"ok": False, "episode": payload.episode, "resolved": False}
    season, ep_no = mapped
    return {"ok": True, "episode": payload.episode, "resolved": True, "season": season, "season_episode": ep_no}
