from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Command failed ({returncode}): {fmt_argv(self.argv)}\n{stderr}")


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def privileged(argv: Sequence[str], sudo: Optional[str]) -> list[str]:
    """Prefix argv with the sudo command, if one is configured."""

    if sudo:
        return [*shlex.split(sudo), *argv]
    return list(argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - Captures stdout/stderr (logged at DEBUG).
    - dry_run logs but does not execute.
    """

    argv_list = list(argv)
    logger.info("CMD %s", fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    try:
        p = subprocess.run(
            argv_list,
            input=input_text,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
        )
    except OSError as e:
        # 127 is the shell's status for a command that cannot be found.
        raise CommandError(argv_list, 127, str(e)) from e

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    if check and p.returncode != 0:
        raise CommandError(argv_list, p.returncode, p.stderr)

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)


def run_foreground(argv: Sequence[str], *, dry_run: bool = False) -> int:
    """Run a command attached to the terminal and return its exit code.

    Daemons started this way print to the user's terminal, so nothing is
    captured here.
    """

    argv_list = list(argv)
    logger.info("CMD %s", fmt_argv(argv_list))
    if dry_run:
        return 0
    try:
        return subprocess.run(argv_list).returncode
    except OSError as e:
        logger.error("Cannot run %s: %s", argv_list[0], e)
        return 127


def spawn_background(argv: Sequence[str], *, dry_run: bool = False) -> Optional[subprocess.Popen]:
    argv_list = list(argv)
    logger.info("CMD (background) %s", fmt_argv(argv_list))
    if dry_run:
        return None
    try:
        return subprocess.Popen(argv_list, stdin=subprocess.DEVNULL)
    except OSError as e:
        raise CommandError(argv_list, 127, str(e)) from e
