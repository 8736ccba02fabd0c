"""CLI entry points for wsl-distro-manager."""

from __future__ import annotations

import argparse
import dataclasses
import threading
from typing import FrozenSet, List, Optional

from wslmgr.config import ManagerConfig, build_manager, parse_env
from wslmgr.exceptions import ManagerError
from wslmgr.manager import LifecycleManager
from wslmgr.utils import log, set_verbose

LIFECYCLE_COMMANDS = ("install", "launch", "terminate", "unregister")


def show_config(cfg: ManagerConfig) -> None:
    """Print the resolved configuration."""
    for field in dataclasses.fields(cfg):
        print(f"  {field.name}: {getattr(cfg, field.name)}")


def list_registered(manager: LifecycleManager) -> None:
    handles = manager.refresh_registered()
    if not handles:
        log("WARN", "No distributions are registered")
        return
    max_name = max(len(handle.name) for handle in handles)
    for handle in handles:
        info = handle.info
        marker = "*" if info.is_default else " "
        state = "Running" if info.running else "Stopped"
        version = info.wsl_version if info.wsl_version is not None else "?"
        print(f"{marker} {info.name:<{max_name}}  {state:<8} v{version}  {info.display_name}")


def list_available(manager: LifecycleManager) -> None:
    available = manager.get_available_to_install()
    if not available:
        log("INFO", "Every known distribution is already installed")
        return
    max_name = max(len(definition.name) for definition in available)
    for definition in available:
        print(f"  {definition.name:<{max_name}}  {definition.friendly_name}")


def list_catalog(manager: LifecycleManager) -> None:
    definitions = manager.catalog.get_definitions()
    if not definitions:
        log("WARN", "Distribution catalog is empty")
        return
    max_name = max(len(name) for name in definitions)
    for name in sorted(definitions, key=str.casefold):
        definition = definitions[name]
        profile = definition.terminal_profile_guid or "-"
        logo = "logo" if definition.logo else "no logo"
        print(f"  {name:<{max_name}}  {definition.friendly_name}  (profile={profile}, {logo})")


def watch(manager: LifecycleManager, ticks: Optional[int] = None) -> None:
    """Print the running set on every poll tick until interrupted or `ticks` events were seen."""
    published = threading.Semaphore(0)

    def _print_running(names: FrozenSet[str]) -> None:
        running = ", ".join(sorted(names, key=str.casefold)) or "<none>"
        print(f"Running: {running}", flush=True)
        published.release()

    manager.subscribe(_print_running)
    log("INFO", f"Watching distribution state every {manager.poller.interval}s (Ctrl+C to exit)")
    try:
        manager.poller.tick()
        seen = 0
        while ticks is None or seen < ticks:
            published.acquire()
            seen += 1
    except KeyboardInterrupt:
        pass
    finally:
        manager.unsubscribe(_print_running)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage WSL distributions")
    parser.add_argument("--show-config", action="store_true", help="Show resolved configuration and exit")
    parser.add_argument("--refresh-catalog", action="store_true", help="Reload the distribution catalog")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("list", help="List registered distributions")
    sub.add_parser("available", help="List distributions available to install")
    sub.add_parser("catalog", help="List all known distribution definitions")
    for command in LIFECYCLE_COMMANDS:
        cmd_parser = sub.add_parser(command, help=f"{command.capitalize()} a distribution")
        cmd_parser.add_argument("name", help="Distribution name")
    watch_parser = sub.add_parser("watch", help="Print running distributions on every poll")
    watch_parser.add_argument("--ticks", type=int, default=None, help="Exit after this many updates")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = parse_env()
    except ManagerError as exc:
        log("ERROR", str(exc))
        return 1
    set_verbose(cfg.verbose)

    if args.show_config:
        show_config(cfg)
        return 0

    if args.command is None:
        parser.print_help()
        return 1

    manager = build_manager(cfg)
    try:
        if args.refresh_catalog:
            manager.catalog.invalidate()
        if args.command == "list":
            list_registered(manager)
        elif args.command == "available":
            list_available(manager)
        elif args.command == "catalog":
            list_catalog(manager)
        elif args.command == "watch":
            watch(manager, ticks=args.ticks)
        else:
            getattr(manager, args.command)(args.name)
            log("SUCCESS", f"{args.command.capitalize()} requested for {args.name}")
        return 0
    except ManagerError as exc:
        log("ERROR", str(exc))
        return 1
    finally:
        manager.close()
