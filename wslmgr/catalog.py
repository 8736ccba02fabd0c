"""Catalog of known WSL distributions for wsl-distro-manager."""

from __future__ import annotations

import threading
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional

try:
    import requests  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("requests is required but not installed") from exc

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from wslmgr.constants import DEFAULT_CATALOG_PATH, DEFAULT_CATALOG_TIMEOUT, USER_AGENT
from wslmgr.exceptions import CatalogError
from wslmgr.models import DistributionDefinition
from wslmgr.utils import log


class YamlDefinitionSource:
    """Definitions from a distributions.yaml file; logo paths are relative to the file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path or DEFAULT_CATALOG_PATH

    def load(self) -> Dict[str, DistributionDefinition]:
        if not self.path.exists():
            raise CatalogError(f"Distribution catalog missing: {self.path}")
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise CatalogError(f"Cannot read distribution catalog {self.path}: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("distributions"), dict):
            raise CatalogError(f"{self.path}: top-level 'distributions' mapping is missing")

        definitions: Dict[str, DistributionDefinition] = {}
        for name, entry in data["distributions"].items():
            name = str(name)
            if not isinstance(entry, dict) or not entry.get("friendly_name"):
                raise CatalogError(f"{self.path}: [{name}] missing required field 'friendly_name'")
            guid = entry.get("terminal_profile_guid")
            definitions[name] = DistributionDefinition(
                name=name,
                friendly_name=str(entry["friendly_name"]),
                logo=self._read_logo(name, entry.get("logo")),
                terminal_profile_guid=str(guid) if guid else None,
            )
        return definitions

    def _read_logo(self, name: str, logo: Optional[str]) -> Optional[bytes]:
        if not logo:
            return None
        logo_path = self.path.parent / logo
        try:
            return logo_path.read_bytes()
        except OSError as exc:
            raise CatalogError(f"{self.path}: [{name}] cannot read logo {logo_path}: {exc}") from exc


class ManifestDefinitionSource:
    """Definitions from the published WSL DistributionInfo.json manifest.

    The manifest decides which distributions are known. Logos and terminal
    profile ids come from the local YAML overlay for names it also lists; the
    manifest's friendly name wins.
    """

    def __init__(
        self,
        url: str,
        overlay: Optional[YamlDefinitionSource] = None,
        timeout: int = DEFAULT_CATALOG_TIMEOUT,
    ) -> None:
        self.url = url
        self.overlay = overlay
        self.timeout = timeout

    def load(self) -> Dict[str, DistributionDefinition]:
        overlay = self.overlay.load() if self.overlay is not None else {}
        definitions: Dict[str, DistributionDefinition] = {}
        for entry in self._fetch_entries():
            name = entry.get("Name")
            if not name:
                continue
            known = overlay.get(name)
            definitions[name] = DistributionDefinition(
                name=name,
                friendly_name=entry.get("FriendlyName") or (known.friendly_name if known else name),
                logo=known.logo if known else None,
                terminal_profile_guid=known.terminal_profile_guid if known else None,
            )
        return definitions

    def _fetch_entries(self) -> list:
        log("DEBUG", f"Fetching distribution manifest: {self.url}")
        try:
            resp = requests.get(self.url, timeout=self.timeout, headers={"User-Agent": USER_AGENT})
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as exc:
            raise CatalogError(f"Failed to fetch distribution manifest {self.url}: {exc}") from exc
        except ValueError as exc:
            raise CatalogError(f"Distribution manifest {self.url} is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise CatalogError(f"Distribution manifest {self.url} must be a JSON object")

        entries = list(payload.get("Distributions") or [])
        # Newer manifests group releases by family.
        for family in (payload.get("ModernDistributions") or {}).values():
            entries.extend(family)
        return [entry for entry in entries if isinstance(entry, dict)]


class Catalog:
    """Lazily loaded, process-lifetime cache of distribution definitions."""

    def __init__(self, source=None) -> None:
        self.source = source or YamlDefinitionSource()
        self._definitions: Optional[Mapping[str, DistributionDefinition]] = None
        self._lock = threading.Lock()

    def get_definitions(self) -> Mapping[str, DistributionDefinition]:
        with self._lock:
            if self._definitions is None:
                # A failed load leaves the cache empty so the next call retries.
                definitions = self.source.load()
                log("DEBUG", f"Loaded {len(definitions)} distribution definitions")
                self._definitions = MappingProxyType(definitions)
            return self._definitions

    def invalidate(self) -> None:
        with self._lock:
            self._definitions = None
