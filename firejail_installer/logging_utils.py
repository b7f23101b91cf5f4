from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from .lib.env import PATHS

DEFAULT_LOG_PATH = PATHS.log_default

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_HANDLER_MARK = "_firejail_installer_handler"


def installed_handlers(root: Optional[logging.Logger] = None) -> List[logging.Handler]:
    root = root or logging.getLogger()
    return [h for h in root.handlers if getattr(h, _HANDLER_MARK, False)]


def reset_logging() -> None:
    """Detach and close the handlers added by configure_logging()."""
    root = logging.getLogger()
    for h in installed_handlers(root):
        root.removeHandler(h)
        h.close()


def _log_candidates(log_path: str, fallback_dir: Optional[str]) -> List[str]:
    fallback = str(Path(fallback_dir or Path.cwd()) / (Path(log_path).name or "firejail-installer.log"))
    return [log_path] if fallback == log_path else [log_path, fallback]


def _open_file_handler(path: str) -> logging.FileHandler:
    Path(os.path.dirname(path) or ".").mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8")


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
    fallback_dir: Optional[str] = None,
) -> Optional[str]:
    """Send log records to a file and, optionally, the console.

    The file receives everything down to DEBUG (captured command output
    included); the console only shows ``level`` and above. /var/log is
    normally root-only, so when ``log_path`` cannot be opened the same file
    name is tried in ``fallback_dir`` (default: the working directory).

    Calling this again replaces the handlers from the previous call.

    Returns the file actually written, or None if no file could be opened.
    """

    reset_logging()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: List[logging.Handler] = []
    chosen_path: Optional[str] = None
    failures: List[str] = []

    for candidate in _log_candidates(log_path, fallback_dir):
        try:
            file_handler = _open_file_handler(candidate)
        except OSError as e:
            failures.append(f"{candidate}: {e}")
            continue
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)
        chosen_path = candidate
        break

    if also_console:
        console = logging.StreamHandler()
        console.setLevel(level)
        handlers.append(console)

    for h in handlers:
        h.setFormatter(fmt)
        setattr(h, _HANDLER_MARK, True)
        root.addHandler(h)

    log = logging.getLogger(__name__)
    for failure in failures:
        log.warning("Cannot open log file %s", failure)
    log.info("Logging initialized (requested=%s, actual=%s)", log_path, chosen_path)
    return chosen_path
