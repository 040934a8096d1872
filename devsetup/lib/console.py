from __future__ import annotations

import logging
import os
import sys
from typing import Optional, TextIO

logger = logging.getLogger(__name__)

RESET = "\033[0m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
CYAN = "\033[36m"

RULE = "=" * 78


class Console:
    """User-facing status lines.

    Everything shown to the user is also written to the log file via the
    module logger, so the log reads as a transcript of the run.
    """

    def __init__(self, stream: Optional[TextIO] = None, color: Optional[bool] = None) -> None:
        self.stream = stream or sys.stdout
        if color is None:
            color = self.stream.isatty() and not os.environ.get("NO_COLOR")
        self.color = color

    def _paint(self, text: str, code: str) -> str:
        return f"{code}{text}{RESET}" if self.color else text

    def _emit(self, line: str) -> None:
        self.stream.write(line + "\n")
        self.stream.flush()

    def success(self, msg: str) -> None:
        logger.info("[ok] %s", msg)
        self._emit(f"{self._paint('[✓]', GREEN)} {msg}")

    def error(self, msg: str) -> None:
        logger.error("%s", msg)
        self._emit(f"{self._paint('[✗]', RED)} {msg}")

    def warning(self, msg: str) -> None:
        logger.warning("%s", msg)
        self._emit(f"{self._paint('[!]', YELLOW)} {msg}")

    def info(self, msg: str) -> None:
        logger.info("%s", msg)
        self._emit(f"{self._paint('[i]', BLUE)} {msg}")

    def plain(self, msg: str = "") -> None:
        self._emit(msg)

    def header(self, title: str) -> None:
        logger.info("=== %s ===", title)
        self._emit("")
        self._emit(self._paint(f"=== {title} ===", CYAN))

    def banner(self, title: str) -> None:
        logger.info("=== %s ===", title)
        self._emit("")
        self._emit(RULE)
        self._emit(self._paint(title, BLUE))
        self._emit(RULE)
        self._emit("")
