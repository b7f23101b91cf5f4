from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.pkg import detect_package_manager

logger = logging.getLogger(__name__)


class DetectPackageManagerStep:
    step_id = "10_detect_package_manager"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        pm = detect_package_manager()
        host = state.setdefault("host", {})
        host["package_manager"] = pm.value
        host["family"] = pm.family
        return state
