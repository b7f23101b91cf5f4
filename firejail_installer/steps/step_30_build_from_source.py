from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import InstallerConfig
from ..lib.source import build_from_source
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class BuildFromSourceStep:
    step_id = "30_build_from_source"

    def enabled(self, state: Dict[str, Any]) -> bool:
        return InstallerConfig(raw=state.get("config") or {}).build_from_source

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallerConfig(raw=state.get("config") or {})

        logger.info("Building Firejail from source for latest features...")
        build_from_source(
            cfg.firejail_source_repo,
            configure_flags=cfg.configure_flags,
            sudo=cfg.sudo,
            dry_run=cfg.dry_run,
        )
        record_decision(
            state,
            "build_from_source",
            {"repo": cfg.firejail_source_repo, "configure_flags": cfg.configure_flags},
        )
        return state
