from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import InstallerConfig
from ..lib.profiles import apply_path_modes, apply_whitelist
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class WhitelistProfilesStep:
    step_id = "50_whitelist_profiles"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallerConfig(raw=state.get("config") or {})

        reports = apply_whitelist(
            cfg.whitelist,
            firejail_dir=cfg.firejail_dir,
            sudo=cfg.sudo,
            dry_run=cfg.dry_run,
        )
        skipped = apply_path_modes(cfg.path_modes, sudo=cfg.sudo, dry_run=cfg.dry_run)

        record_decision(state, "whitelist", [r.as_dict() for r in reports])
        if skipped:
            state.setdefault("execution", {}).setdefault("warnings", []).append(
                {"step": self.step_id, "missing_paths": skipped}
            )
        logger.info("Configuration complete.")
        return state
