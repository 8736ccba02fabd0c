"""Configuration loading and environment variable parsing for wsl-distro-manager."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from wslmgr.catalog import Catalog, ManifestDefinitionSource, YamlDefinitionSource
from wslmgr.constants import (
    DEFAULT_CATALOG_PATH,
    DEFAULT_CATALOG_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_WORKERS,
    DEFAULT_WSL_EXE,
)
from wslmgr.exceptions import ManagerError
from wslmgr.manager import LifecycleManager
from wslmgr.mediator import WslCliMediator
from wslmgr.utils import get_env, get_env_bool, parse_int_env


@dataclass
class ManagerConfig:
    wsl_exe: str
    catalog_path: Path
    catalog_url: Optional[str]
    catalog_timeout: int
    poll_interval: int
    poll_workers: int
    verbose: bool = False


def parse_env() -> ManagerConfig:
    wsl_exe = (get_env("WSL_EXE") or "").strip() or DEFAULT_WSL_EXE

    catalog_path_env = (get_env("WSL_CATALOG_PATH") or "").strip()
    if catalog_path_env:
        catalog_path = Path(catalog_path_env)
        if not catalog_path.is_file():
            raise ManagerError(f"WSL_CATALOG_PATH file not found: {catalog_path}")
    else:
        catalog_path = DEFAULT_CATALOG_PATH

    catalog_url = (get_env("WSL_CATALOG_URL") or "").strip() or None
    if catalog_url and not catalog_url.startswith(("http://", "https://")):
        raise ManagerError(f"WSL_CATALOG_URL must start with http:// or https:// (got '{catalog_url}')")

    return ManagerConfig(
        wsl_exe=wsl_exe,
        catalog_path=catalog_path,
        catalog_url=catalog_url,
        catalog_timeout=parse_int_env("WSL_CATALOG_TIMEOUT", str(DEFAULT_CATALOG_TIMEOUT), min_val=1, max_val=600),
        poll_interval=parse_int_env("WSL_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL), min_val=1, max_val=3600),
        poll_workers=parse_int_env("WSL_POLL_WORKERS", str(DEFAULT_POLL_WORKERS), min_val=1, max_val=32),
        verbose=get_env_bool("LOG_VERBOSE", False),
    )


def build_catalog(cfg: ManagerConfig) -> Catalog:
    overlay = YamlDefinitionSource(cfg.catalog_path)
    if cfg.catalog_url:
        return Catalog(ManifestDefinitionSource(cfg.catalog_url, overlay=overlay, timeout=cfg.catalog_timeout))
    return Catalog(overlay)


def build_manager(cfg: ManagerConfig) -> LifecycleManager:
    return LifecycleManager(
        WslCliMediator(cfg.wsl_exe),
        build_catalog(cfg),
        poll_interval=cfg.poll_interval,
        poll_workers=cfg.poll_workers,
    )
