from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import InstallerConfig
from ..lib.pkg import command_exists, install_firejail
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class InstallFirejailStep:
    step_id = "20_install_firejail"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallerConfig(raw=state.get("config") or {})

        if command_exists("firejail"):
            logger.info("Firejail is already installed. Skipping installation.")
            record_decision(state, "install_firejail", "skipped")
            return state

        pm = (state.get("host") or {}).get("package_manager")
        if not pm:
            raise RuntimeError("host.package_manager missing (run 10_detect_package_manager first)")

        logger.info("Installing firejail with %s", pm)
        ran = install_firejail(pm, sudo=cfg.sudo, dry_run=cfg.dry_run)
        record_decision(state, "install_firejail", {"package_manager": pm, "commands": ran})
        logger.info("Firejail installation complete.")
        return state
