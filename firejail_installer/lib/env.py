from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    firejail_dir: str = "/etc/firejail"
    state_default: str = "/var/lib/firejail-installer/state.json"
    log_default: str = "/var/log/firejail-installer.log"


PATHS = Paths()


def default_sudo() -> str | None:
    """sudo prefix for privileged commands; none when already root."""

    return None if os.geteuid() == 0 else "sudo"
