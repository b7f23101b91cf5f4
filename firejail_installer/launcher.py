from __future__ import annotations

import logging
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, TextIO

from .lib.command import CommandError, fmt_argv, privileged, run_foreground, spawn_background
from .services import LaunchSpec, ServiceChoice

logger = logging.getLogger(__name__)

FIREJAIL = "firejail"


@dataclass
class LaunchOutcome:
    argv: List[str]
    background: bool
    # Exit status; None for a background child still running (or dry-run).
    returncode: Optional[int]
    process: Optional[subprocess.Popen] = None

    @property
    def failed(self) -> bool:
        return self.returncode not in (None, 0)


def firejail_argv(spec: LaunchSpec, *, sudo: Optional[str] = None) -> List[str]:
    argv = [FIREJAIL]
    if spec.profile:
        argv.append(f"--profile={spec.profile}")
    argv += [spec.binary, *spec.args]
    return privileged(argv, sudo)


def launch(
    choice: ServiceChoice,
    *,
    sudo: Optional[str] = None,
    dry_run: bool = False,
    grace_seconds: float = 1.0,
    out: TextIO | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[LaunchOutcome]:
    """Run every command of a menu entry under firejail.

    Foreground commands run one after another; background ones are started
    together and checked once after grace_seconds. Failures are reported,
    never retried.
    """

    if choice.is_submenu:
        raise ValueError(f"{choice.label!r} is a sub-menu, not a launchable entry")

    out = out or sys.stdout
    if choice.message:
        print(choice.message, file=out)

    outcomes: List[LaunchOutcome] = []
    started: List[LaunchOutcome] = []

    for spec in choice.commands:
        argv = firejail_argv(spec, sudo=sudo)
        if spec.background:
            try:
                proc = spawn_background(argv, dry_run=dry_run)
            except CommandError as e:
                logger.error("Cannot start %s: %s", fmt_argv(argv), e.stderr)
                o = LaunchOutcome(argv=argv, background=True, returncode=e.returncode)
            else:
                o = LaunchOutcome(argv=argv, background=True, returncode=None, process=proc)
                started.append(o)
        else:
            rc = run_foreground(argv, dry_run=dry_run)
            o = LaunchOutcome(argv=argv, background=False, returncode=rc)
            if rc != 0:
                logger.warning("%s exited with status %s", fmt_argv(argv), rc)
        outcomes.append(o)

    if any(o.process is not None for o in started) and grace_seconds > 0:
        sleep(grace_seconds)
    for o in started:
        if o.process is None:
            continue
        o.returncode = o.process.poll()
        if o.returncode is not None:
            logger.warning("%s exited early with status %s", fmt_argv(o.argv), o.returncode)

    if choice.done_message:
        print(choice.done_message, file=out)
    return outcomes
