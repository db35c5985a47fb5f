from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re
import shutil
from typing import Iterable

from loguru import logger

from anime_renamer.errors import OrganizationError
from anime_renamer.models.entities import ParsedFile


@dataclass
class RenameOptions:
    keep_tags: bool = False
    season_folders: bool = False


@dataclass
class RenameEntry:
    source: Path
    target: Path
    season: int
    episode: int


def _safe_name(s: str) -> str:
    # Keep cross-platform safe and human-readable naming.
    s = s.replace('/', ' - ').replace('／', ' - ').replace('\\', ' - ').strip()
    s = re.sub(r'\s+', ' ', s)
    return s


def season_folder(season: int) -> str:
    return f"Season {season}"


def target_filename(show_title: str, season: int, ep_no: int, parsed: ParsedFile, keep_tags: bool = False) -> str:
    tags = "".join(f"[{t}]" for t in parsed.tags) if keep_tags else ""
    ext = f".{parsed.extension}" if parsed.extension else ""
    return f"{_safe_name(show_title)} S{season:02d}E{ep_no:02d}{tags}{ext}"


def build_entry(src: Path, show_title: str, season: int, ep_no: int, parsed: ParsedFile, options: RenameOptions) -> RenameEntry:
    name = target_filename(show_title, season, ep_no, parsed, options.keep_tags)
    dst_dir = src.parent / season_folder(season) if options.season_folders else src.parent
    return RenameEntry(source=src, target=dst_dir / name, season=season, episode=ep_no)


def rename_file(entry: RenameEntry) -> Path:
    dst = entry.target
    if dst.exists():
        raise OrganizationError(f"target already exists: {dst}")
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OrganizationError(f"cannot create directory {dst.parent}: {exc}") from exc
    try:
        shutil.move(str(entry.source), str(dst))
    except OSError as exc:
        raise OrganizationError(f"cannot move {entry.source}: {exc}") from exc
    return dst


def execute_plan(entries: Iterable[RenameEntry]) -> dict:
    renamed = 0
    failed: list[dict] = []
    for entry in entries:
        try:
            dst = rename_file(entry)
        except OrganizationError as exc:
            logger.error("rename failed: {} - {}", entry.source, exc)
            failed.append({"source": str(entry.source), "target": str(entry.target), "error": str(exc)})
            continue
        logger.info("renamed {} -> {}", entry.source.name, dst)
        renamed += 1

    return {"ok": not failed, "renamed": renamed, "failed": failed}
