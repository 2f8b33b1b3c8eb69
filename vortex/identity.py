"""Identity resolution for library files.

Maps a path relative to its library root onto series/season/episode
(video) or series/chapter (books). Pure functions; the pattern tables are
compiled once on first use and shared read-only.

Layouts understood for video:
    Show/Season 2/S02E05 - Title.mkv  -> ("Show", 2, 5)
    Show/Ep 07.mkv                    -> ("Show", 1, 7)
    Pilot.mkv                         -> (<library name>, 1, 1)

Pattern order matters: the first matching pattern wins, so the more
specific forms are listed first.
"""

from __future__ import annotations

import dataclasses
import functools
import re
from pathlib import PurePath
from typing import Optional, Pattern, Tuple

DEFAULT_SEASON = 1
DEFAULT_EPISODE = 1


@dataclasses.dataclass(frozen=True)
class VideoIdentity:
    series_name: str
    season_number: int
    episode_number: int


@dataclasses.dataclass(frozen=True)
class BookIdentity:
    series_name: Optional[str] = None
    chapter_number: Optional[int] = None


@functools.lru_cache(maxsize=None)
def _season_pattern() -> Pattern[str]:
    return re.compile(r"season\s*(\d+)")


@functools.lru_cache(maxsize=None)
def _episode_patterns() -> Tuple[Pattern[str], ...]:
    return (
        re.compile(r"s\d+e(\d+)"),          # S01E05
        re.compile(r"\d+x(\d+)"),           # 1x05
        re.compile(r"ep(?:isode)?\s*(\d+)"),  # Ep 5, Episode5
        # Also hits "- 1080 -" style tags and dates; kept as-is
        re.compile(r"[-\s](\d{1,3})[-\s]"),
        re.compile(r"\be(\d+)"),            # E05
    )


@functools.lru_cache(maxsize=None)
def _chapter_patterns() -> Tuple[Pattern[str], ...]:
    return (
        re.compile(r"chapter[_\-\s]*(\d+)"),
        re.compile(r"ch[_\-\s]*(\d+)"),
        # Bare number fallback: "Vol 2" or "Part 3" are read as chapters too
        re.compile(r"(\d+)"),
    )


def _first_match(patterns: Tuple[Pattern[str], ...], text: str) -> Optional[int]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def episode_number_from_stem(stem: str) -> int:
    """Return the episode number found in a filename stem, or 1."""
    number = _first_match(_episode_patterns(), stem.lower())
    return DEFAULT_EPISODE if number is None else number


def season_number_from_dir(name: str) -> int:
    """Return the season number of a "Season N" folder name, or 1."""
    match = _season_pattern().search(name.lower())
    return int(match.group(1)) if match else DEFAULT_SEASON


def chapter_number_from_stem(stem: str) -> Optional[int]:
    """Return the chapter number found in a filename stem, if any."""
    return _first_match(_chapter_patterns(), stem.lower())


def resolve_video_identity(relative_path: PurePath, library_name: str) -> VideoIdentity:
    """Infer series, season and episode for a video file.

    Args:
        relative_path: Path of the file relative to its library root.
        library_name: Display name of the library, used as the series name
            for files placed directly in the root.
    """
    parts = relative_path.parts
    if len(parts) >= 3:
        series_name = parts[0]
        season = season_number_from_dir(parts[1])
    elif len(parts) == 2:
        series_name = parts[0]
        season = DEFAULT_SEASON
    else:
        series_name = library_name
        season = DEFAULT_SEASON

    return VideoIdentity(
        series_name=series_name,
        season_number=season,
        episode_number=episode_number_from_stem(relative_path.stem),
    )


def resolve_book_identity(relative_path: PurePath) -> BookIdentity:
    """Infer series and chapter for a book file.

    Books directly in the library root belong to no series.
    """
    parts = relative_path.parts
    if len(parts) <= 1:
        return BookIdentity()
    return BookIdentity(
        series_name=parts[0],
        chapter_number=chapter_number_from_stem(relative_path.stem),
    )
