from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .state_store import is_step_completed, mark_step_completed

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single idempotent setup step."""

    step_id: str

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


def _is_enabled(step: Step, state: Dict[str, Any]) -> bool:
    """Steps may define enabled(state); those without one always run."""
    enabled = getattr(step, "enabled", None)
    return True if enabled is None else bool(enabled(state))


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    skipped_steps: List[str]
    disabled_steps: List[str]


def _check_step_id(steps: Sequence[Step], step_id: Optional[str], flag: str) -> None:
    if step_id is None:
        return
    known = [s.step_id for s in steps]
    if step_id not in known:
        raise ValueError(f"Unknown step for {flag}: {step_id} (known: {', '.join(known)})")


def run_pipeline(
    *,
    state: Dict[str, Any],
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
) -> PipelineResult:
    """Run steps in order with resume/idempotency semantics."""

    _check_step_id(steps, start_at, "start_at")
    _check_step_id(steps, stop_after, "stop_after")

    ran: List[str] = []
    skipped: List[str] = []
    disabled: List[str] = []

    started = start_at is None

    for step in steps:
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                continue

        state.setdefault("execution", {})["current_step"] = step.step_id

        if (not force) and is_step_completed(state, step.step_id):
            logger.info("Skipping step %s (already completed)", step.step_id)
            skipped.append(step.step_id)
        elif not _is_enabled(step, state):
            # Never marked completed.
            logger.info("Step %s disabled by configuration", step.step_id)
            disabled.append(step.step_id)
        else:
            logger.info("Running step %s", step.step_id)
            try:
                state = step.run(state)
            except Exception as e:
                state.setdefault("execution", {}).setdefault("errors", []).append(
                    {"step": step.step_id, "error": str(e), "type": type(e).__name__}
                )
                raise
            mark_step_completed(state, step.step_id)
            ran.append(step.step_id)

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    state.setdefault("execution", {})["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran, skipped_steps=skipped, disabled_steps=disabled)
