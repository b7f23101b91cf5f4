from __future__ import annotations

import logging
import sys
from typing import Any, Callable, Optional, Sequence, TextIO

from .services import ServiceChoice

logger = logging.getLogger(__name__)

TITLE = "Select a service to run with Firejail:"
PROMPT = "#? "
EXIT_LABEL = "Exit"
INVALID = "Invalid option. Try again."

Reader = Callable[[str], str]
Launcher = Callable[[ServiceChoice], Any]


def render_options(labels: Sequence[str]) -> str:
    return "\n".join(f"{i}) {label}" for i, label in enumerate(labels, start=1))


def parse_selection(text: str, count: int) -> Optional[int]:
    """1-based menu number -> 0-based index, or None if out of range/not a number."""
    text = text.strip()
    if not text.isdigit():
        return None
    n = int(text)
    if 1 <= n <= count:
        return n - 1
    return None


def _pick_from_submenu(choice: ServiceChoice, *, read: Reader, out: TextIO) -> ServiceChoice:
    labels = [c.label for c in choice.choices]
    print(choice.prompt or f"Select {choice.label}:", file=out)
    print(render_options(labels), file=out)
    while True:
        line = read(PROMPT)
        if not line.strip():
            print(render_options(labels), file=out)
            continue
        idx = parse_selection(line, len(labels))
        if idx is None:
            print(INVALID, file=out)
            continue
        return choice.choices[idx]


def service_menu(
    catalog: Sequence[ServiceChoice],
    *,
    launch_fn: Launcher,
    read: Reader = input,
    out: TextIO | None = None,
    title: str = TITLE,
) -> int:
    """Numbered service menu; loops until Exit or end of input.

    Returns how many entries were launched.
    """

    out = out or sys.stdout
    labels = [c.label for c in catalog] + [EXIT_LABEL]
    launched = 0

    print(title, file=out)
    print(render_options(labels), file=out)

    while True:
        try:
            line = read(PROMPT)
            if not line.strip():
                print(render_options(labels), file=out)
                continue

            idx = parse_selection(line, len(labels))
            if idx is None:
                print(INVALID, file=out)
                continue
            if idx == len(catalog):
                print("Exiting.", file=out)
                return launched

            choice = catalog[idx]
            if choice.is_submenu:
                choice = _pick_from_submenu(choice, read=read, out=out)
        except EOFError:
            print(file=out)
            return launched

        try:
            launch_fn(choice)
            launched += 1
        except OSError as e:
            logger.error("Failed to launch %s: %s", choice.label, e)
            print(f"ERROR: {e}", file=out)
