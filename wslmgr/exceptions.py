"""Custom exceptions for wsl-distro-manager."""

from __future__ import annotations

from typing import List, Optional


class ManagerError(RuntimeError):
    """Raised on unrecoverable configuration or runtime errors."""


class CatalogError(ManagerError):
    """Raised when the distribution catalog cannot be loaded."""


class HostCommandError(ManagerError):
    """Raised when a call into the virtualization host fails."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        output: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.output = output
