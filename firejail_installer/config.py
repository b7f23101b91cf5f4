from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .lib.env import PATHS, default_sudo

DEFAULT_FIREJAIL_SOURCE_REPO = "https://github.com/netblue30/firejail.git"
DEFAULT_PROFILES_REPO = "https://github.com/chiraag-nataraj/firejail-profiles.git"
DEFAULT_CONFIGURE_FLAGS = ["--enable-apparmor", "--enable-selinux"]
DEFAULT_WHITELIST_ENTRIES = ["whitelist /etc/ssh", "whitelist /etc/ssh/sshd_config"]
DEFAULT_WHITELIST_PROFILES = ["server.profile", "ssh.profile"]
DEFAULT_PATH_MODES = {"/etc/ssh/sshd_config": "644", "/etc/ssh": "755"}


def default_whitelist(firejail_dir: str) -> Dict[str, List[str]]:
    return {
        str(Path(firejail_dir) / name): list(DEFAULT_WHITELIST_ENTRIES)
        for name in DEFAULT_WHITELIST_PROFILES
    }


def _str_list(value: Any, key: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"config.{key} must be a list of strings")
    return list(value)


def _flag(raw: Dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"config.{key} must be true or false, got {value!r}")
    return value


def _mapping(value: Any, key: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"config.{key} must be a mapping")
    return value


@dataclass(frozen=True)
class InstallerConfig:
    raw: Dict[str, Any]

    @property
    def dry_run(self) -> bool:
        return _flag(self.raw, "dry_run", False)

    @property
    def sudo(self) -> Optional[str]:
        """Command prefix for privileged operations (None means run directly)."""
        if "sudo" in self.raw:
            value = self.raw["sudo"]
            if value is not None and not isinstance(value, str):
                raise ValueError(f"config.sudo must be a command string or null, got {value!r}")
            return value or None
        return default_sudo()

    @property
    def firejail_dir(self) -> str:
        return str(self.raw.get("firejail_dir") or PATHS.firejail_dir)

    @property
    def build_from_source(self) -> bool:
        return _flag(self.raw, "build_from_source", True)

    @property
    def firejail_source_repo(self) -> str:
        return str(self.raw.get("firejail_source_repo") or DEFAULT_FIREJAIL_SOURCE_REPO)

    @property
    def configure_flags(self) -> List[str]:
        if "configure_flags" not in self.raw:
            return list(DEFAULT_CONFIGURE_FLAGS)
        return _str_list(self.raw["configure_flags"], "configure_flags")

    @property
    def fetch_profiles(self) -> bool:
        return _flag(self.raw, "fetch_profiles", True)

    @property
    def profiles_repo(self) -> str:
        return str(self.raw.get("profiles_repo") or DEFAULT_PROFILES_REPO)

    @property
    def whitelist(self) -> Dict[str, List[str]]:
        if "whitelist" not in self.raw:
            return default_whitelist(self.firejail_dir)
        wl = _mapping(self.raw["whitelist"], "whitelist")
        return {str(k): _str_list(v, f"whitelist[{k}]") for k, v in wl.items()}

    @property
    def path_modes(self) -> Dict[str, str]:
        if "path_modes" not in self.raw:
            return dict(DEFAULT_PATH_MODES)
        modes = _mapping(self.raw["path_modes"], "path_modes")
        return {str(k): str(v) for k, v in modes.items()}

    @property
    def services_enabled(self) -> Optional[List[str]]:
        services = _mapping(self.raw.get("services") or {}, "services")
        enabled = services.get("enabled")
        if enabled is None:
            return None
        return _str_list(enabled, "services.enabled")

    @property
    def services_extra(self) -> List[Dict[str, Any]]:
        services = _mapping(self.raw.get("services") or {}, "services")
        extra = services.get("extra") or []
        if not isinstance(extra, list) or not all(isinstance(e, dict) for e in extra):
            raise ValueError("config.services.extra must be a list of mappings")
        return list(extra)

    @property
    def launch_grace_seconds(self) -> float:
        return float(self.raw.get("launch_grace_seconds", 1.0))

    def validate(self) -> None:
        """Raise ValueError if any typed field is malformed."""
        self.dry_run
        self.sudo
        self.build_from_source
        self.fetch_profiles
        self.configure_flags
        self.whitelist
        self.path_modes
        self.services_enabled
        self.services_extra
        self.launch_grace_seconds


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay override on base; nested mappings are merged one level deep."""

    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = {**out[k], **v}
        else:
            out[k] = v
    return out


def load_config_file(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("config file must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a mapping/object")

    InstallerConfig(raw=raw).validate()
    return raw
