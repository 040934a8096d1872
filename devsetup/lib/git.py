from __future__ import annotations

from pathlib import Path
from typing import Optional

from .command import run_cmd


def git_clone(url: str, dest: Path, *, depth: Optional[int] = None, dry_run: bool = False) -> None:
    argv = ["git", "clone"]
    if depth:
        argv.append(f"--depth={depth}")
    argv += [url, str(dest)]
    if not dry_run:
        dest.parent.mkdir(parents=True, exist_ok=True)
    run_cmd(argv, capture=False, dry_run=dry_run)
