from __future__ import annotations

import enum
import logging
import shutil
from typing import Callable, Dict, List, Optional, Sequence

from .command import privileged, run_cmd

logger = logging.getLogger(__name__)

Which = Callable[[str], Optional[str]]


class UnsupportedPlatformError(RuntimeError):
    pass


class PackageManager(str, enum.Enum):
    APT = "apt-get"
    DNF = "dnf"
    ZYPPER = "zypper"
    YUM = "yum"

    @property
    def family(self) -> str:
        return _FAMILIES[self]


_FAMILIES = {
    PackageManager.APT: "Debian-based",
    PackageManager.DNF: "Fedora-based",
    PackageManager.ZYPPER: "OpenSUSE-based",
    PackageManager.YUM: "RHEL-based",
}

# First match wins; dnf is checked before yum.
PROBE_ORDER = (PackageManager.APT, PackageManager.DNF, PackageManager.ZYPPER, PackageManager.YUM)

_INSTALL_PLANS: Dict[PackageManager, List[List[str]]] = {
    PackageManager.APT: [
        ["add-apt-repository", "-y", "ppa:deki/firejail"],
        ["apt-get", "update"],
        [
            "apt-get",
            "install",
            "-y",
            "firejail",
            "firejail-profiles",
            "build-essential",
            "git",
            "libapparmor-dev",
            "pkg-config",
            "gawk",
        ],
    ],
    PackageManager.DNF: [
        ["dnf", "install", "-y", "firejail", "git", "gcc", "make", "libselinux-devel"],
    ],
    PackageManager.ZYPPER: [
        ["zypper", "install", "-y", "firejail", "git", "gcc", "make"],
    ],
    PackageManager.YUM: [
        ["yum", "install", "-y", "epel-release"],
        ["yum", "install", "-y", "firejail", "git", "gcc", "make", "libselinux-devel"],
    ],
}


def command_exists(name: str, *, which: Which = shutil.which) -> bool:
    return which(name) is not None


def detect_package_manager(*, which: Which = shutil.which) -> PackageManager:
    for pm in PROBE_ORDER:
        if command_exists(pm.value, which=which):
            logger.info("%s OS detected (%s available)", pm.family, pm.value)
            return pm
    raise UnsupportedPlatformError(
        "Unsupported OS: none of " + ", ".join(pm.value for pm in PROBE_ORDER) + " found"
    )


def install_plan(pm: PackageManager | str) -> List[List[str]]:
    """Commands that install firejail (plus build deps) for a package manager."""

    pm = PackageManager(pm)
    return [list(argv) for argv in _INSTALL_PLANS[pm]]


def install_firejail(
    pm: PackageManager | str,
    *,
    sudo: Optional[str] = None,
    dry_run: bool = False,
) -> List[List[str]]:
    """Run the install plan; returns the argv lists that were executed."""

    ran: List[List[str]] = []
    for argv in install_plan(pm):
        full: Sequence[str] = privileged(argv, sudo)
        run_cmd(full, dry_run=dry_run)
        ran.append(list(full))
    return ran
