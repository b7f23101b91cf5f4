from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from . import files

logger = logging.getLogger(__name__)

SKELETON_INCLUDES = ("common.inc", "disable-common.inc", "disable-programs.inc")


class ProfileError(RuntimeError):
    pass


@dataclass
class PatchReport:
    profile: str
    created: bool = False
    added: List[str] = field(default_factory=list)
    present: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "profile": self.profile,
            "created": self.created,
            "added": list(self.added),
            "present": list(self.present),
        }


def skeleton_profile(firejail_dir: str) -> str:
    """Minimal profile body used when a whitelisted profile does not exist."""
    d = firejail_dir.rstrip("/") or "/"
    return "".join(f"include {d}/{name}\n" for name in SKELETON_INCLUDES)


def has_line(text: str, entry: str) -> bool:
    """True if some line of text equals entry (surrounding whitespace ignored).

    A plain substring test would treat "whitelist /etc/ssh" as present in a
    file that only contains "whitelist /etc/ssh/sshd_config".
    """

    wanted = entry.strip()
    return any(line.strip() == wanted for line in text.splitlines())


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def ensure_entries(
    profile: str,
    entries: Iterable[str],
    *,
    firejail_dir: str,
    sudo: Optional[str] = None,
    dry_run: bool = False,
) -> PatchReport:
    """Append each entry to profile unless an identical line is already there."""

    p = Path(profile)
    report = PatchReport(profile=profile)

    if p.is_file():
        files.chmod(profile, "u+w", sudo=sudo, dry_run=dry_run)
        current = _read(p)
    else:
        logger.info("Firejail profile not found at %s. Creating it.", profile)
        current = skeleton_profile(firejail_dir)
        files.write_text(profile, current, sudo=sudo, dry_run=dry_run)
        files.chmod(profile, "644", sudo=sudo, dry_run=dry_run)
        report.created = True

    for entry in entries:
        if has_line(current, entry):
            logger.info("%s already exists in %s", entry, profile)
            report.present.append(entry)
            continue
        logger.info("Adding %s to %s", entry, profile)
        files.append_line(profile, entry, sudo=sudo, dry_run=dry_run)
        # Track appends locally so dry-run and sudo writes dedupe too.
        current = current + ("" if not current or current.endswith("\n") else "\n") + entry + "\n"
        report.added.append(entry)

    return report


def apply_whitelist(
    whitelist: Mapping[str, Iterable[str]],
    *,
    firejail_dir: str,
    sudo: Optional[str] = None,
    dry_run: bool = False,
) -> List[PatchReport]:
    return [
        ensure_entries(profile, entries, firejail_dir=firejail_dir, sudo=sudo, dry_run=dry_run)
        for profile, entries in whitelist.items()
    ]


def apply_path_modes(
    modes: Mapping[str, str],
    *,
    sudo: Optional[str] = None,
    dry_run: bool = False,
) -> List[str]:
    """chmod each existing path; returns the paths that were skipped."""

    skipped: List[str] = []
    for path, mode in modes.items():
        if not Path(path).exists():
            logger.warning("Cannot set mode %s on %s: path does not exist", mode, path)
            skipped.append(path)
            continue
        logger.info("Setting mode %s on %s", mode, path)
        files.chmod(path, mode, sudo=sudo, dry_run=dry_run)
    return skipped


def require_file(path: str) -> None:
    if not Path(path).is_file():
        raise ProfileError(f"Required firejail file is missing: {path}")
