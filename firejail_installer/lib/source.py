from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from . import files
from .command import privileged, run_cmd
from .profiles import require_file

logger = logging.getLogger(__name__)


def git_clone(url: str, dest: str, *, dry_run: bool = False) -> None:
    run_cmd(["git", "clone", "--depth", "1", url, dest], dry_run=dry_run)


def build_from_source(
    repo_url: str,
    *,
    configure_flags: Sequence[str],
    sudo: Optional[str] = None,
    dry_run: bool = False,
) -> None:
    """Clone, configure, build and `make install-strip` firejail.

    The clone lives in a temporary directory that is always removed.
    """

    work = tempfile.mkdtemp(prefix="firejail-build-")
    src = str(Path(work) / "firejail")
    try:
        git_clone(repo_url, src, dry_run=dry_run)
        run_cmd(["./configure", *configure_flags], cwd=src, dry_run=dry_run)
        run_cmd(["make"], cwd=src, dry_run=dry_run)
        run_cmd(privileged(["make", "install-strip"], sudo), cwd=src, dry_run=dry_run)
    finally:
        shutil.rmtree(work, ignore_errors=True)
    logger.info("Firejail built and installed from %s", repo_url)


def _copy_into(srcs: List[Path], dest_dir: str, *, sudo: Optional[str], dry_run: bool) -> List[str]:
    copied = [str(Path(dest_dir) / s.name) for s in srcs]
    if not srcs:
        return copied
    if dry_run:
        for s in srcs:
            logger.info("Would copy %s -> %s", str(s), dest_dir)
        return copied
    if sudo:
        run_cmd(privileged(["cp", *[str(s) for s in srcs], dest_dir], sudo))
    else:
        Path(dest_dir).mkdir(parents=True, exist_ok=True)
        for s in srcs:
            shutil.copy2(s, Path(dest_dir) / s.name)
    return copied


def fetch_profiles(
    repo_url: str,
    firejail_dir: str,
    *,
    sudo: Optional[str] = None,
    dry_run: bool = False,
) -> List[str]:
    """Copy *.profile and common.inc from a profile repo into firejail_dir.

    Raises ProfileError if common.inc is not in firejail_dir afterwards.
    Returns the destination paths that were installed.
    """

    work = tempfile.mkdtemp(prefix="firejail-profiles-")
    clone = Path(work) / "profiles"
    try:
        git_clone(repo_url, str(clone), dry_run=dry_run)

        srcs = sorted(clone.glob("*.profile"))
        common = clone / "common.inc"
        if common.is_file():
            srcs.append(common)
        elif not dry_run:
            logger.warning("%s has no common.inc", repo_url)

        logger.info("Copying %d profile file(s) to %s", len(srcs), firejail_dir)
        installed = _copy_into(srcs, firejail_dir, sudo=sudo, dry_run=dry_run)
        for dst in installed:
            files.chmod(dst, "644", sudo=sudo, dry_run=dry_run)
    finally:
        shutil.rmtree(work, ignore_errors=True)

    if not dry_run:
        require_file(str(Path(firejail_dir) / "common.inc"))
    logger.info("Firejail profiles have been added from %s", repo_url)
    return installed
