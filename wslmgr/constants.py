"""Global constants and default configuration for wsl-distro-manager."""

from __future__ import annotations

import os
import re
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_CATALOG_PATH = PACKAGE_DIR / "data" / "distributions.yaml"

DEFAULT_WSL_EXE = "wsl.exe"
DEFAULT_POLL_INTERVAL = 60  # seconds
DEFAULT_POLL_WORKERS = 4
DEFAULT_CATALOG_TIMEOUT = 30
USER_AGENT = "wsl-distro-manager/1.0"

TRUTHY = {"1", "true", "yes", "on"}

_LOG_VERBOSE = os.environ.get("LOG_VERBOSE", "").lower() in TRUTHY

# `wsl --list --verbose` state column value for a running distribution.
WSL_RUNNING_STATE = "Running"
WSL_NO_DISTRIBUTIONS_MARKERS = (
    "has no installed distributions",
    "no installed distributions",
    "WSL_E_DEFAULT_DISTRO_NOT_FOUND",
)
WSL_NO_RUNNING_MARKERS = (
    "There are no running distributions",
    "no running distributions",
)

_INVALID_NAME_RE = re.compile(r"[\x00-\x1f\x7f]")
