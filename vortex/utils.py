"""Small helpers shared by the scanner and the cover generator."""

from __future__ import annotations

from pathlib import Path


def short_path(path: Path, depth: int = 2) -> str:
    """Last `depth` components of `path`, for log lines.

    /srv/tv/Show/Season 1/S01E01.mkv -> Season 1/S01E01.mkv
    """
    return "/".join(path.parts[-depth:])
