from __future__ import annotations

import argparse
import functools
import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

from .config import InstallerConfig, load_config_file, merge_config
from .launcher import launch
from .lib.command import CommandError
from .lib.env import PATHS
from .lib.pkg import UnsupportedPlatformError
from .lib.profiles import ProfileError
from .logging_utils import configure_logging
from .menu import service_menu
from .pipeline import run_pipeline
from .services import ServiceChoice, build_catalog, describe, find_choice
from .state_store import ensure_defaults, load_state, save_state
from .steps import (
    BuildFromSourceStep,
    DetectPackageManagerStep,
    FetchProfilesStep,
    InstallFirejailStep,
    WhitelistProfilesStep,
)

logger = logging.getLogger(__name__)


DEFAULT_STATE_PATH = PATHS.state_default
DEFAULT_LOG_PATH = PATHS.log_default


def build_steps():
    return [
        DetectPackageManagerStep(),
        InstallFirejailStep(),
        BuildFromSourceStep(),
        FetchProfilesStep(),
        WhitelistProfilesStep(),
    ]


def load_run_state(
    state_path: str,
    *,
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Stored state with the YAML config file and then CLI overrides on top.

    Returns (state, saved_config). CLI overrides apply to this run only, so
    saved_config is what gets written back.
    """

    state = ensure_defaults(load_state(state_path))
    saved = state["config"]
    if config_path:
        saved = merge_config(saved, load_config_file(config_path))
    cfg = merge_config(saved, overrides or {})
    state["config"] = cfg
    InstallerConfig(raw=cfg).validate()
    return state, saved


def run(
    *,
    state: Dict[str, Any],
    state_path: str = DEFAULT_STATE_PATH,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
    saved_config: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Run the setup pipeline, persisting state for resume.

    Dry runs never write state: their steps did nothing and must not be
    marked completed.
    """

    dry_run = InstallerConfig(raw=state.get("config") or {}).dry_run
    try:
        result = run_pipeline(
            state=state,
            steps=build_steps(),
            start_at=start_at,
            stop_after=stop_after,
            force=force,
        )
        state = result.state
        summary = state.setdefault("execution", {}).setdefault("summary", {})
        summary["ran_steps"] = result.ran_steps
        summary["skipped_steps"] = result.skipped_steps
        summary["disabled_steps"] = result.disabled_steps
        return state
    finally:
        if dry_run:
            logger.info("Dry run: state not saved to %s", state_path)
        elif saved_config is not None:
            save_state(state_path, dict(state, config=saved_config))
        else:
            save_state(state_path, state)


def catalog_for(cfg: InstallerConfig) -> List[ServiceChoice]:
    return build_catalog(
        firejail_dir=cfg.firejail_dir,
        enabled=cfg.services_enabled,
        extra=cfg.services_extra,
    )


def launcher_for(cfg: InstallerConfig):
    return functools.partial(
        launch,
        sudo=cfg.sudo,
        dry_run=cfg.dry_run,
        grace_seconds=cfg.launch_grace_seconds,
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="firejail-installer",
        description="Install firejail, patch profile whitelists and launch services inside firejail.",
    )
    p.add_argument("--state", default=DEFAULT_STATE_PATH, help="Path to installer state (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("-v", "--verbose", action="store_true", help="Show DEBUG output on the console")
    p.add_argument("--config", default=None, help="YAML config merged over stored config")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 30_build_from_source)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--force", action="store_true", help="Re-run steps even if marked completed")
    p.add_argument("--dry-run", action="store_true", help="Log commands and file edits without running them")
    p.add_argument("--no-build", action="store_true", help="Skip building firejail from source")
    p.add_argument("--no-fetch-profiles", action="store_true", help="Skip fetching extra profiles")
    p.add_argument("--no-menu", action="store_true", help="Do not show the service menu after setup")
    p.add_argument("--skip-setup", action="store_true", help="Go straight to the service menu")
    p.add_argument("--service", default=None, help="Launch one service (LABEL or LABEL/CHOICE) and exit")
    p.add_argument("--list-services", action="store_true", help="Print launchable services and exit")
    return p


def _overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.dry_run:
        overrides["dry_run"] = True
    if args.no_build:
        overrides["build_from_source"] = False
    if args.no_fetch_profiles:
        overrides["fetch_profiles"] = False
    return overrides


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        state, saved_config = load_run_state(
            args.state, config_path=args.config, overrides=_overrides_from_args(args)
        )
        cfg = InstallerConfig(raw=state["config"])
        catalog = catalog_for(cfg)
    except (OSError, ValueError) as e:
        print(f"firejail-installer: {e}", file=sys.stderr)
        return 2

    if args.list_services:
        for name in describe(catalog):
            print(name)
        return 0

    single: Optional[ServiceChoice] = None
    if args.service:
        try:
            single = find_choice(catalog, args.service)
        except KeyError as e:
            print(f"firejail-installer: {e.args[0]}", file=sys.stderr)
            return 2

    actual_log_path = configure_logging(
        log_path=args.log, level=logging.DEBUG if args.verbose else logging.INFO
    )
    paths = state.setdefault("execution", {}).setdefault("paths", {})
    paths["log_path_requested"] = args.log
    paths["log_path_actual"] = actual_log_path

    try:
        if not args.skip_setup and single is None:
            run(
                state=state,
                state_path=args.state,
                start_at=args.start_at,
                stop_after=args.stop_after,
                force=args.force,
                saved_config=saved_config,
            )

        if single is not None:
            outcomes = launcher_for(cfg)(single)
            return 1 if any(o.failed for o in outcomes) else 0

        if not args.no_menu:
            service_menu(catalog, launch_fn=launcher_for(cfg))
        return 0
    except UnsupportedPlatformError as e:
        logger.error("%s. Exiting.", e)
        return 1
    except (CommandError, ProfileError, OSError):
        logger.exception("Setup failed")
        return 1
    except ValueError as e:
        logger.error("%s", e)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
