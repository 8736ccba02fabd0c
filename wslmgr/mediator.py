"""Gateway to the WSL virtualization host for wsl-distro-manager.

`HostMediator` is the only boundary to the host. The manager, the handles and
the poller depend on the abstract interface so tests can substitute an
in-memory implementation. `WslCliMediator` is the production implementation
and drives `wsl.exe` through subprocess.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Set

from wslmgr.constants import (
    DEFAULT_WSL_EXE,
    WSL_NO_DISTRIBUTIONS_MARKERS,
    WSL_NO_RUNNING_MARKERS,
    WSL_RUNNING_STATE,
)
from wslmgr.exceptions import HostCommandError
from wslmgr.models import RegisteredDistribution
from wslmgr.utils import decode_host_output, log, run, spawn, validate_distribution_name


class HostMediator(ABC):
    """Abstract interface to the virtualization host.

    Lifecycle commands are fire-and-forget: they return once the request has
    been handed to the host and do not wait for the state change.
    """

    @abstractmethod
    def is_running(self, name: str) -> bool: ...

    @abstractmethod
    def get_all_registered(self) -> List[RegisteredDistribution]:
        """Return every registered distribution, without catalog metadata."""
        ...

    @abstractmethod
    def get_all_running_names(self) -> Set[str]: ...

    @abstractmethod
    def install(self, name: str) -> None: ...

    @abstractmethod
    def launch(self, name: str) -> None: ...

    @abstractmethod
    def terminate(self, name: str) -> None: ...

    @abstractmethod
    def unregister(self, name: str) -> None: ...


def _is_empty_listing(text: str) -> bool:
    return any(marker in text for marker in WSL_NO_DISTRIBUTIONS_MARKERS)


def parse_verbose_listing(text: str) -> List[RegisteredDistribution]:
    """Parse `wsl --list --verbose` output.

    The first non-empty line is the column header. A leading `*` marks the
    default distribution.
    """
    distributions: List[RegisteredDistribution] = []
    lines = [line for line in text.splitlines() if line.strip()]
    for line in lines[1:]:
        stripped = line.strip()
        is_default = stripped.startswith("*")
        tokens = stripped.lstrip("*").split()
        if not tokens:
            continue
        state = tokens[1] if len(tokens) > 1 else ""
        version = int(tokens[2]) if len(tokens) > 2 and tokens[2].isdigit() else None
        distributions.append(
            RegisteredDistribution(
                name=tokens[0],
                running=state == WSL_RUNNING_STATE,
                wsl_version=version,
                is_default=is_default,
            )
        )
    return distributions


def parse_quiet_listing(text: str) -> Set[str]:
    return {line.strip() for line in text.splitlines() if line.strip()}


class WslCliMediator(HostMediator):
    """HostMediator backed by the wsl.exe command line."""

    def __init__(self, wsl_exe: str = DEFAULT_WSL_EXE) -> None:
        self.wsl_exe = wsl_exe

    def is_running(self, name: str) -> bool:
        return validate_distribution_name(name) in self.get_all_running_names()

    def get_all_registered(self) -> List[RegisteredDistribution]:
        result = run([self.wsl_exe, "--list", "--verbose"], check=False)
        output = decode_host_output(result.stdout)
        if _is_empty_listing(output + decode_host_output(result.stderr)):
            return []
        if result.returncode != 0:
            raise HostCommandError(
                f"Listing distributions failed with status {result.returncode}: {output.strip()}",
                command=[self.wsl_exe, "--list", "--verbose"],
                returncode=result.returncode,
                output=output,
            )
        return parse_verbose_listing(output)

    def get_all_running_names(self) -> Set[str]:
        cmd = [self.wsl_exe, "--list", "--running", "--quiet"]
        result = run(cmd, check=False)
        output = decode_host_output(result.stdout)
        if result.returncode != 0:
            output += decode_host_output(result.stderr)
            # wsl.exe exits non-zero when nothing is running
            if _is_empty_listing(output) or any(marker in output for marker in WSL_NO_RUNNING_MARKERS):
                return set()
            raise HostCommandError(
                f"Listing running distributions failed with status {result.returncode}: {output.strip()}",
                command=cmd,
                returncode=result.returncode,
                output=output,
            )
        return parse_quiet_listing(output)

    def install(self, name: str) -> None:
        name = validate_distribution_name(name)
        log("INFO", f"Installing distribution {name}")
        spawn([self.wsl_exe, "--install", "--distribution", name])

    def launch(self, name: str) -> None:
        name = validate_distribution_name(name)
        log("INFO", f"Launching distribution {name}")
        spawn([self.wsl_exe, "--distribution", name, "--cd", "~"])

    def terminate(self, name: str) -> None:
        name = validate_distribution_name(name)
        log("INFO", f"Terminating distribution {name}")
        run([self.wsl_exe, "--terminate", name])

    def unregister(self, name: str) -> None:
        name = validate_distribution_name(name)
        log("INFO", f"Unregistering distribution {name}")
        run([self.wsl_exe, "--unregister", name])
