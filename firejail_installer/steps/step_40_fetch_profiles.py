from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import InstallerConfig
from ..lib.source import fetch_profiles
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class FetchProfilesStep:
    step_id = "40_fetch_profiles"

    def enabled(self, state: Dict[str, Any]) -> bool:
        return InstallerConfig(raw=state.get("config") or {}).fetch_profiles

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallerConfig(raw=state.get("config") or {})

        installed = fetch_profiles(
            cfg.profiles_repo,
            cfg.firejail_dir,
            sudo=cfg.sudo,
            dry_run=cfg.dry_run,
        )
        record_decision(state, "fetch_profiles", {"repo": cfg.profiles_repo, "installed": len(installed)})
        return state
