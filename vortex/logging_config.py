"""Logging for Vortex.

Everything goes to `vortex.log` in the data directory (rotated at 10MB,
five backups kept); the console gets a rich handler at the requested
level. Modules just call `get_logger(__name__)`.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

LOG_FILENAME = "vortex.log"
FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s"

_configured = False


def _log_dir() -> Path:
    # Same rule as config.DATA_DIR, which cannot be imported from here
    return Path(os.environ.get("DATA_DIR") or Path(__file__).resolve().parents[1])


def _file_handler(log_dir: Path) -> logging.Handler:
    handler = RotatingFileHandler(
        log_dir / LOG_FILENAME,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def _console_handler(level: int) -> logging.Handler:
    theme = Theme({"logging.level.info": "bold cyan", "logging.level.warning": "yellow"})
    handler = RichHandler(
        console=Console(theme=theme, stderr=True),
        rich_tracebacks=True,
        show_path=False,
        show_time=False,
    )
    handler.setLevel(level)
    return handler


def setup_logging(log_level: str = "INFO") -> None:
    """Attach the file and console handlers to the root logger once."""
    global _configured
    if _configured:
        return

    log_dir = _log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(_file_handler(log_dir))
    root.addHandler(_console_handler(getattr(logging, log_level.upper(), logging.INFO)))

    # requests logs every TMDB connection at DEBUG
    for noisy in ("urllib3", "PIL"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
