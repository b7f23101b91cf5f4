from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .lib.env import PATHS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LaunchSpec:
    """One daemon invocation, run as `firejail [--profile=P] binary args...`."""

    binary: str
    args: Tuple[str, ...] = ()
    profile: Optional[str] = None
    background: bool = False


@dataclass(frozen=True)
class ServiceChoice:
    label: str
    message: str = ""
    commands: Tuple[LaunchSpec, ...] = ()
    # Entries with choices open a nested menu instead of launching directly.
    choices: Tuple["ServiceChoice", ...] = ()
    prompt: Optional[str] = None
    done_message: Optional[str] = None

    @property
    def is_submenu(self) -> bool:
        return bool(self.choices)


def _run(label: str, *specs: LaunchSpec, message: Optional[str] = None) -> ServiceChoice:
    return ServiceChoice(label=label, message=message or f"Running {label} in Firejail...", commands=specs)


def builtin_catalog(firejail_dir: str = PATHS.firejail_dir) -> List[ServiceChoice]:
    ssh_profile = str(Path(firejail_dir) / "ssh.profile")
    apache = LaunchSpec("/usr/sbin/apache2", ("-D", "FOREGROUND"))
    mysqld = LaunchSpec("/usr/sbin/mysqld_safe")
    smbd = LaunchSpec("/usr/sbin/smbd", ("-F",))

    return [
        ServiceChoice(
            label="22/SSH",
            message="Running SSH in Firejail with default profile...",
            commands=(LaunchSpec("/usr/sbin/sshd", ("-D",), profile=ssh_profile),),
        ),
        _run("53/DNS", LaunchSpec("/usr/sbin/named", ("-f",)), message="Running DNS in Firejail..."),
        _run("80/HTTP", apache, message="Running HTTP in Firejail..."),
        _run("443/HTTPS", LaunchSpec("/usr/sbin/nginx", ("-g", "daemon off;")), message="Running HTTPS in Firejail..."),
        _run("135/NetBIOS", LaunchSpec("/usr/sbin/nmbd", ("-F",)), message="Running NetBIOS in Firejail..."),
        _run("139/SMB", smbd, message="Running SMB in Firejail..."),
        _run("445/SMB", smbd, message="Running SMB on port 445 in Firejail..."),
        _run("3389/RDP", LaunchSpec("/usr/sbin/xrdp", ("-nodaemon",)), message="Running RDP in Firejail..."),
        ServiceChoice(
            label="Database (MySQL/PostgreSQL)",
            prompt="Select Database:",
            choices=(
                _run("MySQL", mysqld),
                _run("PostgreSQL", LaunchSpec("/usr/pgsql/bin/postgres", ("-D", "/var/lib/pgsql/data"))),
            ),
        ),
        ServiceChoice(
            label="FTP (vsftpd/proftpd)",
            prompt="Select FTP Server:",
            choices=(
                _run("vsftpd", LaunchSpec("/usr/sbin/vsftpd")),
                _run("proftpd", LaunchSpec("/usr/sbin/proftpd")),
            ),
        ),
        _run(
            "Email (SMTP/POP3/IMAP)",
            LaunchSpec("/usr/sbin/postfix", ("start",)),
            LaunchSpec("/usr/sbin/dovecot"),
            message="Running Email Server in Firejail...",
        ),
        _run("Active Directory (Samba)", smbd, message="Running Samba for AD in Firejail..."),
        _run("DHCP", LaunchSpec("/usr/sbin/dhcpd", ("-f",)), message="Running DHCP Server in Firejail..."),
        ServiceChoice(
            label="LAMP Stack (Linux, Apache, MySQL, PHP)",
            message="Running LAMP Stack in Firejail...",
            commands=(
                LaunchSpec(apache.binary, apache.args, background=True),
                LaunchSpec(mysqld.binary, background=True),
            ),
            done_message="LAMP Stack running.",
        ),
    ]


def _spec_from_mapping(raw: Any, where: str) -> LaunchSpec:
    if not isinstance(raw, dict) or not isinstance(raw.get("binary"), str):
        raise ValueError(f"{where}: each command needs a 'binary' string")
    args = raw.get("args") or []
    if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
        raise ValueError(f"{where}: 'args' must be a list of strings")
    profile = raw.get("profile")
    if profile is not None and not isinstance(profile, str):
        raise ValueError(f"{where}: 'profile' must be a string")
    return LaunchSpec(
        binary=raw["binary"],
        args=tuple(args),
        profile=profile,
        background=bool(raw.get("background", False)),
    )


def choice_from_mapping(raw: Dict[str, Any]) -> ServiceChoice:
    """Build a ServiceChoice from config (services.extra entries)."""

    if not isinstance(raw, dict):
        raise ValueError(f"service entries must be mappings, got {type(raw).__name__}")
    label = raw.get("label")
    if not isinstance(label, str) or not label.strip():
        raise ValueError("service entries need a non-empty 'label'")

    commands = raw.get("commands") or []
    choices = raw.get("choices") or []
    if not isinstance(commands, list) or not isinstance(choices, list):
        raise ValueError(f"service {label!r}: 'commands' and 'choices' must be lists")
    if bool(commands) == bool(choices):
        raise ValueError(f"service {label!r}: exactly one of 'commands' or 'choices' is required")

    return ServiceChoice(
        label=label,
        message=str(raw.get("message") or (f"Running {label} in Firejail..." if commands else "")),
        commands=tuple(_spec_from_mapping(c, f"service {label!r}") for c in commands),
        choices=tuple(choice_from_mapping(c) for c in choices),
        prompt=raw.get("prompt"),
        done_message=raw.get("done_message"),
    )


def build_catalog(
    *,
    firejail_dir: str = PATHS.firejail_dir,
    enabled: Optional[Sequence[str]] = None,
    extra: Iterable[Dict[str, Any]] = (),
) -> List[ServiceChoice]:
    """Built-in entries, overlaid with extra ones, optionally filtered by label.

    An extra entry whose label matches a built-in one replaces it in place.
    """

    catalog = builtin_catalog(firejail_dir)
    index = {c.label: i for i, c in enumerate(catalog)}
    for raw in extra:
        choice = choice_from_mapping(raw)
        if choice.label in index:
            catalog[index[choice.label]] = choice
        else:
            index[choice.label] = len(catalog)
            catalog.append(choice)

    if enabled is None:
        return catalog

    unknown = [label for label in enabled if label not in index]
    if unknown:
        raise ValueError(f"Unknown services in services.enabled: {', '.join(unknown)}")
    wanted = set(enabled)
    return [c for c in catalog if c.label in wanted]


def find_choice(catalog: Sequence[ServiceChoice], path: str) -> ServiceChoice:
    """Resolve "LABEL" or "LABEL/CHOICE" to a launchable entry.

    Labels may themselves contain "/" (e.g. "22/SSH"), so exact labels are
    tried before splitting off a sub-menu choice.
    """

    for c in catalog:
        if c.label == path:
            if c.is_submenu:
                names = ", ".join(f"{c.label}/{s.label}" for s in c.choices)
                raise KeyError(f"{path!r} is a sub-menu; pick one of: {names}")
            return c

    for c in catalog:
        prefix = c.label + "/"
        if c.is_submenu and path.startswith(prefix):
            rest = path[len(prefix):]
            for sub in c.choices:
                if sub.label == rest:
                    return sub

    raise KeyError(f"Unknown service: {path!r}")


def describe(catalog: Sequence[ServiceChoice]) -> List[str]:
    """Flat list of launchable service paths, for --list-services."""

    out: List[str] = []
    for c in catalog:
        if c.is_submenu:
            out.extend(f"{c.label}/{s.label}" for s in c.choices)
        else:
            out.append(c.label)
    return out
