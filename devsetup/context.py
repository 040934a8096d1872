from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from .config import SetupConfig
from .lib.console import Console


class SetupCancelled(RuntimeError):
    pass


class InvalidSetup(Exception):
    """Bad config file, state file or step range; raised before any step runs."""


def ask_yes_no(prompt: str) -> bool:
    """Accept y/Y, and also "yes" in any case."""
    try:
        reply = input(prompt)
    except EOFError:
        return False
    return reply.strip().lower() in {"y", "yes"}


@dataclass(frozen=True)
class SetupCtx:
    cfg: SetupConfig
    console: Console = field(default_factory=Console)
    dry_run: bool = False
    # nvim flags
    force: bool = False
    skip_backup: bool = False
    no_compiler: bool = False
    confirm: Callable[[str], bool] = ask_yes_no
    started_at: datetime = field(default_factory=datetime.now)
