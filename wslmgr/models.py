"""Data models for wsl-distro-manager."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DistributionDefinition:
    name: str
    friendly_name: str
    logo: Optional[bytes] = None
    terminal_profile_guid: Optional[str] = None

    def logo_base64(self) -> Optional[str]:
        if self.logo is None:
            return None
        return base64.b64encode(self.logo).decode("ascii")


@dataclass
class RegisteredDistribution:
    """Live registration reported by the host, optionally merged with catalog metadata."""

    name: str
    running: bool = False
    wsl_version: Optional[int] = None
    is_default: bool = False
    # Filled in from the catalog when the name is known
    friendly_name: Optional[str] = None
    logo: Optional[bytes] = None
    terminal_profile_guid: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.friendly_name or self.name

    def merge(self, definition: DistributionDefinition) -> None:
        self.friendly_name = definition.friendly_name
        self.logo = definition.logo
        self.terminal_profile_guid = definition.terminal_profile_guid
