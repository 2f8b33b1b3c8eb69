"""Config management for Vortex.

Reads `config.ini` from the data directory (beside main.py by default).
Libraries themselves live in the database; this file only carries
process-wide settings (scanner, thumbnails, metadata provider).
"""

from __future__ import annotations

import configparser
import dataclasses
import os
import pathlib
import sys
from typing import Optional

from .logging_config import get_logger

logger = get_logger(__name__)


def _get_project_root() -> pathlib.Path:
    if getattr(sys, "frozen", False):
        return pathlib.Path(sys.executable).resolve().parent
    return pathlib.Path(__file__).resolve().parents[1]


PROJECT_ROOT = _get_project_root()

# DATA_DIR holds all persistent state (config.ini, vortex.db, thumbnails/).
DATA_DIR = pathlib.Path(os.environ.get("DATA_DIR", str(PROJECT_ROOT)))
DEFAULT_CONFIG_PATH = DATA_DIR / "config.ini"

DEFAULT_IGNORE_PATTERNS = (".DS_Store", "Thumbs.db", "@eaDir")


class ConfigError(ValueError):
    """Raised when config.ini holds a value the engine cannot use."""


@dataclasses.dataclass
class ScannerConfig:
    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS


@dataclasses.dataclass
class ThumbnailConfig:
    width: int = 300
    height: int = 450
    quality: int = 85


@dataclasses.dataclass
class MetadataConfig:
    provider: str = "tmdb"
    tmdb_api_key: str = ""
    language: str = "en-US"
    timeout: int = 10


@dataclasses.dataclass
class VortexConfig:
    scanner: ScannerConfig
    thumbnails: ThumbnailConfig
    metadata: MetadataConfig
    data_dir: pathlib.Path = DATA_DIR

    @property
    def database_path(self) -> pathlib.Path:
        return self.data_dir / "vortex.db"

    @property
    def thumbnails_dir(self) -> pathlib.Path:
        return self.data_dir / "thumbnails"


def _split_list(value: str) -> tuple[str, ...]:
    return tuple(p.strip() for p in value.split(",") if p.strip())


def load_config(config_path: Optional[pathlib.Path] = None) -> VortexConfig:
    """Load configuration from config.ini.

    Defaults to `config.ini` in the data directory. The metadata provider
    name is checked against the provider registry here so that a typo
    fails at startup instead of on the first scan.
    """
    from .providers import available_providers

    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    parser = configparser.ConfigParser()
    parser.read(path)

    scanner = ScannerConfig(
        ignore_patterns=_split_list(
            parser.get(
                "scanner",
                "ignore_patterns",
                fallback=",".join(DEFAULT_IGNORE_PATTERNS),
            )
        ),
    )

    thumbs = ThumbnailConfig(
        width=parser.getint("thumbnails", "width", fallback=300),
        height=parser.getint("thumbnails", "height", fallback=450),
        quality=parser.getint("thumbnails", "quality", fallback=85),
    )

    api_key = parser.get("metadata", "tmdb_api_key", fallback="").strip()
    if not api_key:
        api_key = os.environ.get("TMDB_API_KEY", "").strip()

    metadata = MetadataConfig(
        provider=parser.get("metadata", "provider", fallback="tmdb").strip().lower(),
        tmdb_api_key=api_key,
        language=parser.get("metadata", "language", fallback="en-US"),
        timeout=parser.getint("metadata", "timeout", fallback=10),
    )
    if metadata.provider not in available_providers():
        raise ConfigError(
            f"Unknown metadata provider '{metadata.provider}' in {path} "
            f"(available: {', '.join(sorted(available_providers()))})"
        )

    return VortexConfig(
        scanner=scanner,
        thumbnails=thumbs,
        metadata=metadata,
    )


_cached_config: Optional[VortexConfig] = None


def get_config() -> VortexConfig:
    """Return the cached config singleton. Loads from disk on first call."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reset_config_cache() -> None:
    """Clear the cached config (useful for tests)."""
    global _cached_config
    _cached_config = None
