from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Default to JSON for unknown extensions.
    return "json"


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8")
    if _detect_format(p) == "yaml":
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object/dict, got {type(data)}")

    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) == "yaml":
        p.write_text(yaml.safe_dump(state, sort_keys=False) + "\n", encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys with defaults (without overriding user values).

    Only plain, user-editable settings are seeded here. Derived settings
    (whitelist map, sudo prefix) are computed by InstallerConfig so that
    changing firejail_dir or the effective uid is picked up on the next run.
    """

    state.setdefault("version", 1)
    state.setdefault("config", {})
    state.setdefault("host", {})
    state.setdefault("execution", {})

    cfg = state["config"]
    cfg.setdefault("dry_run", False)
    cfg.setdefault("build_from_source", True)
    cfg.setdefault("fetch_profiles", True)

    exe = state["execution"]
    exe.setdefault("current_step", None)
    exe.setdefault("completed_steps", [])
    exe.setdefault("errors", [])

    return state


def record_decision(state: Dict[str, Any], key: str, value: Any) -> None:
    state.setdefault("execution", {}).setdefault("decisions", {})[key] = value


def mark_step_completed(state: Dict[str, Any], step_id: str) -> None:
    exe = state.setdefault("execution", {})
    completed = exe.setdefault("completed_steps", [])
    if step_id not in completed:
        completed.append(step_id)


def is_step_completed(state: Dict[str, Any], step_id: str) -> bool:
    exe = state.get("execution") or {}
    completed = exe.get("completed_steps") or []
    return step_id in completed
