from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .command import privileged, run_cmd

logger = logging.getLogger(__name__)


def write_text(path: str, contents: str, *, sudo: Optional[str] = None, dry_run: bool = False) -> None:
    """Create/replace a file. Root-owned targets go through `sudo tee`."""

    if dry_run:
        logger.info("Would write %s", path)
        return
    if sudo:
        run_cmd(privileged(["tee", path], sudo), input_text=contents)
        return
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(contents, encoding="utf-8")


def append_line(path: str, line: str, *, sudo: Optional[str] = None, dry_run: bool = False) -> None:
    """Append a single line, adding a separating newline if the file lacks one."""

    p = Path(path)
    prefix = ""
    if p.exists():
        data = p.read_bytes()
        if data and not data.endswith(b"\n"):
            prefix = "\n"
    text = f"{prefix}{line}\n"

    if dry_run:
        logger.info("Would append %r to %s", line, path)
        return
    if sudo:
        run_cmd(privileged(["tee", "-a", path], sudo), input_text=text)
        return
    with p.open("a", encoding="utf-8") as f:
        f.write(text)


def chmod(path: str, mode: str, *, sudo: Optional[str] = None, dry_run: bool = False) -> None:
    """chmod with either an octal mode ("644") or a symbolic one ("u+w")."""

    if dry_run:
        logger.info("Would chmod %s %s", mode, path)
        return
    if sudo:
        run_cmd(privileged(["chmod", mode, path], sudo))
        return
    if mode.isdigit():
        os.chmod(path, int(mode, 8))
    elif mode == "u+w":
        os.chmod(path, os.stat(path).st_mode | 0o200)
    else:
        # Other symbolic modes are left to chmod(1).
        run_cmd(["chmod", mode, path])
