from __future__ import annotations

import argparse
import json

from anime_renamer.services.parser import FileParser
from anime_renamer.services.pipeline import parse_files
from anime_renamer.services.scanner import scan_video_files


def main() -> int:
    parser = argparse.ArgumentParser(description="Dump how every video file in a directory is parsed")
    parser.add_argument("path", help="Directory to scan")
    parser.add_argument("-r", "--recursive", action="store_true", help="Scan subdirectories too")
    args = parser.parse_args()

    files = scan_video_files(args.path, recursive=args.recursive)
    batch = parse_files(files, FileParser())

    print(
        json.dumps(
            {
                "files": len(files),
                "parsed": [{"path": str(p), **parsed.as_dict()} for p, parsed in batch.parsed],
                "already_formatted": [str(p) for p in batch.already_formatted],
                "failures": [{"filename": f.filename, "reason": f.reason} for f in batch.failures],
            },
            ensure_ascii=False,
            indent=2,
        )
    )
    return 1 if batch.failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
