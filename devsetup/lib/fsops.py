from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def backup_path(path: Path, now: Optional[datetime] = None) -> Path:
    """`~/.zshrc` -> `~/.zshrc.backup.20250101_120000`."""
    return path.with_name(f"{path.name}.backup.{timestamp(now)}")


def backup_tree(src: Path, *, now: Optional[datetime] = None, dry_run: bool = False) -> Path:
    dst = backup_path(src, now)
    if dry_run:
        logger.info("Would back up %s -> %s", src, dst)
        return dst
    shutil.copytree(src, dst, symlinks=True)
    logger.info("Backed up %s -> %s", src, dst)
    return dst


def backup_file(src: Path, *, now: Optional[datetime] = None, dry_run: bool = False) -> Path:
    dst = backup_path(src, now)
    if dry_run:
        logger.info("Would back up %s -> %s", src, dst)
        return dst
    shutil.copy2(src, dst)
    logger.info("Backed up %s -> %s", src, dst)
    return dst


def remove_tree(path: Path, *, dry_run: bool = False) -> None:
    if dry_run:
        logger.info("Would remove %s", path)
        return
    if path.is_symlink() or path.is_file():
        path.unlink()
    else:
        shutil.rmtree(path)
    logger.info("Removed %s", path)


def copy_tree(src: Path, dst: Path, *, dry_run: bool = False) -> List[str]:
    """Copy every file under src into dst, overwriting. Returns relative paths written."""
    if not src.exists():
        raise FileNotFoundError(str(src))

    written: List[str] = []
    for item in sorted(src.rglob("*")):
        if item.is_dir() or item.name == "__init__.py" or "__pycache__" in item.parts:
            continue
        rel = item.relative_to(src)
        out = dst / rel
        if dry_run:
            logger.info("Would write %s", out)
        else:
            out.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(item, out)
        written.append(rel.as_posix())
    return written
