from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from loguru import logger

from anime_renamer.settings import settings


def _is_video(p: Path, exts: set[str]) -> bool:
    return p.suffix.lower() in exts


def scan_video_files(path: str | Path, recursive: bool = False, extensions: Iterable[str] | None = None) -> list[Path]:
    root = Path(path)
    exts = {e if e.startswith(".") else f".{e}" for e in (x.lower() for x in extensions)} if extensions else settings.video_extension_set()

    found: list[Path] = []
    if recursive:
        seen: set[tuple[int, int]] = set()
        for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
            try:
                st = os.stat(dirpath)
            except OSError as exc:
                logger.warning("cannot stat directory {}: {}", dirpath, exc)
                dirnames[:] = []
                continue
            if (st.st_dev, st.st_ino) in seen:
                # symlink to a directory already walked (loop or alias)
                logger.warning("skipping already scanned directory {}", dirpath)
                dirnames[:] = []
                continue
            seen.add((st.st_dev, st.st_ino))
            for name in filenames:
                p = Path(dirpath) / name
                if p.is_file() and _is_video(p, exts):
                    found.append(p)
    else:
        try:
            entries = list(root.iterdir())
        except OSError as exc:
            logger.warning("cannot read directory {}: {}", root, exc)
            return []
        found = [p for p in entries if p.is_file() and _is_video(p, exts)]

    return sorted(found)
