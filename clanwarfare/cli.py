from __future__ import annotations
import argparse
import asyncio
import json
import os
import tempfile
from dataclasses import asdict, replace
from pathlib import Path

import structlog

from .cache.gateway import clear_cache
from .config import SETTINGS, Settings
from .errors import ClanWarfareError
from .fetchers.orchestrator import fetch_snapshot
from .fetchers.sections import build_phases
from .logging_conf import configure_logging

log = structlog.get_logger()


def write_snapshot(doc: dict, path: Path) -> None:
    """Write the snapshot JSON in one step; readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(doc, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def _settings_from(args) -> Settings:
    s = SETTINGS
    if getattr(args, "output", None):
        s = replace(s, snapshot_file=Path(args.output))
    if getattr(args, "match_history", False):
        s = replace(s, enable_match_history=True)
    if getattr(args, "previous_leaderboards", False):
        s = replace(s, enable_previous_leaderboards=True)
    return s


def cmd_fetch(args):
    settings = _settings_from(args)
    try:
        snapshot = asyncio.run(fetch_snapshot(settings))
    except ClanWarfareError as e:
        log.error("fetch_failed", error=str(e))
        return 1
    write_snapshot(snapshot.doc(), settings.snapshot_file)
    log.info("snapshot_written", path=str(settings.snapshot_file))
    return 0


def cmd_sections(args):
    for phase in build_phases(_settings_from(args)):
        print(f"[{phase.name}]")
        for s in phase.sections:
            deps = ", ".join(f"{g}.{op}" for g, op in s.depends_on) or ("always" if s.always_refresh else "-")
            state = f"skip: {s.skip}" if s.skip else "run"
            print(f"  {s.name:<38} {s.endpoint or '(bungie)':<42} {deps:<42} {state}")


def cmd_clear_cache(args):
    n = clear_cache(SETTINGS.data_dir)
    print(f"Removed {n} cached payloads from {SETTINGS.data_dir}")


def cmd_settings(args):
    print("\n".join(f"{k} = {v}" for k, v in asdict(SETTINGS).items() if k != "bungie_api_key"))


def main(argv=None):
    configure_logging(SETTINGS.log_level)
    p = argparse.ArgumentParser(prog="clanwarfare")
    sub = p.add_subparsers(dest="cmd")

    s = sub.add_parser("fetch", help="Fetch, normalize and write the site snapshot")
    s.add_argument("--output", help="Snapshot path (default: SNAPSHOT_FILE)")
    s.add_argument("--match-history", action="store_true", help="Collect match history regardless of env")
    s.add_argument("--previous-leaderboards", action="store_true", help="Collect previous event leaderboards")
    s.set_defaults(func=cmd_fetch)

    s = sub.add_parser("sections", help="Show the fetch graph")
    s.set_defaults(func=cmd_sections)

    s = sub.add_parser("clear-cache", help="Delete cached upstream payloads")
    s.set_defaults(func=cmd_clear_cache)

    s = sub.add_parser("settings")
    s.set_defaults(func=cmd_settings)

    args = p.parse_args(argv)
    if not hasattr(args, "func"):
        p.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
