from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .lib.fsops import timestamp

DEFAULT_LOG_DIR = "~/.local/state/devsetup"
FALLBACK_LOG_NAME = "devsetup.log"


def default_log_path(recipe: str, *, home: Optional[Path] = None) -> str:
    base = (home or Path.home()) / DEFAULT_LOG_DIR[2:]
    return str(base / f"{recipe}_setup_{timestamp()}.log")


def configure_logging(
    log_path: str,
    level: int = logging.INFO,
    also_console: bool = False,
) -> str:
    """Configure logging.

    The log file is a transcript of the run (commands, decisions, status
    lines). Status lines already reach the terminal through Console, so the
    console handler is only added for --verbose.

    If log_path cannot be opened, fall back to ./devsetup.log.
    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_devsetup_configured", False):
        return getattr(logger, "_devsetup_log_path", log_path)

    chosen_path = os.path.expanduser(log_path)
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    try:
        Path(os.path.dirname(chosen_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler: logging.Handler = logging.FileHandler(chosen_path, encoding="utf-8")
    except OSError:
        chosen_path = str(Path.cwd() / FALLBACK_LOG_NAME)
        file_handler = logging.FileHandler(chosen_path, encoding="utf-8")
    file_handler.setFormatter(fmt)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        console.setLevel(level)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_devsetup_configured", True)
    setattr(logger, "_devsetup_log_path", chosen_path)
    setattr(logger, "_devsetup_handlers", handlers)

    logging.getLogger(__name__).info("Logging initialized (requested=%s, actual=%s)", log_path, chosen_path)
    return chosen_path


def reset_logging() -> None:
    """Drop handlers installed by configure_logging (used between runs in one process)."""
    logger = logging.getLogger()
    if not getattr(logger, "_devsetup_configured", False):
        return
    for h in getattr(logger, "_devsetup_handlers", []):
        logger.removeHandler(h)
        h.close()
    setattr(logger, "_devsetup_handlers", [])
    setattr(logger, "_devsetup_configured", False)
