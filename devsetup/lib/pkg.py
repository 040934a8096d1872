from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .command import privileged, run_cmd

logger = logging.getLogger(__name__)

FDFIND_PATH = Path("/usr/bin/fdfind")
FD_PATH = Path("/usr/bin/fd")


def apt_update(*, dry_run: bool = False) -> None:
    run_cmd(privileged(["apt-get", "update"]), capture=False, dry_run=dry_run)


def apt_install(packages: Sequence[str], *, dry_run: bool = False) -> None:
    if not packages:
        return
    run_cmd(
        privileged(["apt-get", "install", "-y", *packages]),
        capture=False,
        dry_run=dry_run,
    )


def ensure_fd_symlink(
    *,
    fdfind: Path = FDFIND_PATH,
    fd: Path = FD_PATH,
    dry_run: bool = False,
) -> bool:
    """Debian ships fd-find as `fdfind`; expose it as `fd` too.

    Returns True if a symlink was created.
    """
    if not fdfind.exists() or fd.exists() or fd.is_symlink():
        return False
    logger.info("Creating fd symlink %s -> %s", fd, fdfind)
    run_cmd(privileged(["ln", "-s", str(fdfind), str(fd)]), dry_run=dry_run)
    return True
