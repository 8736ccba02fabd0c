"""Utility functions for wsl-distro-manager."""

from __future__ import annotations

import os
import subprocess
import threading
from typing import List, Optional

from wslmgr.constants import _INVALID_NAME_RE, _LOG_VERBOSE, TRUTHY
from wslmgr.exceptions import HostCommandError, ManagerError

_LOG_LOCK = threading.Lock()
_SPAWNED: List[subprocess.Popen] = []
_SPAWNED_LOCK = threading.Lock()


def set_verbose(enabled: bool) -> None:
    """Switch DEBUG output on or off after import, e.g. from a parsed config."""
    global _LOG_VERBOSE
    _LOG_VERBOSE = enabled


def log(level: str, message: str) -> None:
    """Lightweight structured logging compatible with existing colour expectation."""
    if level == "DEBUG" and not _LOG_VERBOSE:
        return
    colours = {
        "INFO": "\033[0;34m",
        "WARN": "\033[1;33m",
        "ERROR": "\033[0;31m",
        "SUCCESS": "\033[0;32m",
        "DEBUG": "\033[0;90m",
    }
    colour = colours.get(level, "")
    reset = "\033[0m" if colour else ""
    # The state poller logs from its own thread.
    with _LOG_LOCK:
        print(f"{colour}[{level}]{reset} {message}", flush=True)


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def get_env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.lower() in TRUTHY


def parse_int_env(name: str, default: str, min_val: int = 1, max_val: Optional[int] = None) -> int:
    raw = get_env(name, default)
    assert raw is not None
    try:
        value = int(raw)
    except ValueError:
        raise ManagerError(f"{name} must be an integer (got '{raw}')")
    if value < min_val:
        raise ManagerError(f"{name} must be >= {min_val} (got {value})")
    if max_val is not None and value > max_val:
        raise ManagerError(f"{name} must be <= {max_val} (got {value})")
    return value


def decode_host_output(raw: bytes) -> str:
    """Decode wsl.exe output, which is UTF-16-LE unless WSL_UTF8 is set on the host."""
    if not raw:
        return ""
    if b"\x00" in raw:
        text = raw.decode("utf-16-le", errors="replace")
    else:
        text = raw.decode("utf-8", errors="replace")
    return text.lstrip("\ufeff").replace("\x00", "")


def validate_distribution_name(name: str) -> str:
    if not name or not name.strip():
        raise HostCommandError("Distribution name must not be empty")
    if name != name.strip():
        raise HostCommandError(f"Distribution name has leading or trailing whitespace: '{name}'")
    if _INVALID_NAME_RE.search(name):
        raise HostCommandError(f"Distribution name contains control characters: {name!r}")
    return name


def run(cmd: List[str], check: bool = True, **kwargs) -> subprocess.CompletedProcess:
    """Run command with logging, capturing raw output for decode_host_output."""
    log("DEBUG", f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, **kwargs)
    except OSError as exc:
        raise HostCommandError(f"Failed to run {cmd[0]}: {exc}", command=cmd) from exc
    if check and result.returncode != 0:
        output = decode_host_output(result.stdout) + decode_host_output(result.stderr)
        raise HostCommandError(
            f"{' '.join(cmd)} exited with status {result.returncode}: {output.strip()}",
            command=cmd,
            returncode=result.returncode,
            output=output,
        )
    return result


def spawn(cmd: List[str]) -> subprocess.Popen:
    """Start a command in its own console without waiting for it."""
    log("DEBUG", f"Spawning: {' '.join(cmd)}")
    creationflags = getattr(subprocess, "CREATE_NEW_CONSOLE", 0)
    try:
        proc = subprocess.Popen(cmd, creationflags=creationflags)
    except OSError as exc:
        raise HostCommandError(f"Failed to start {cmd[0]}: {exc}", command=cmd) from exc
    with _SPAWNED_LOCK:
        # poll() reaps children that have already exited.
        _SPAWNED[:] = [p for p in _SPAWNED if p.poll() is None]
        _SPAWNED.append(proc)
    return proc
