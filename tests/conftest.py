"""Shared test fixtures: in-memory host mediator and catalog sources."""

from __future__ import annotations

import dataclasses
from typing import Dict, Iterable, List, Optional, Set

import pytest
import yaml

from wslmgr.catalog import Catalog
from wslmgr.manager import LifecycleManager
from wslmgr.mediator import HostMediator
from wslmgr.models import DistributionDefinition, RegisteredDistribution


class FakeHostMediator(HostMediator):
    """In-memory host: registrations keyed by name, commands recorded in `calls`."""

    def __init__(self, registered: Optional[Iterable[RegisteredDistribution]] = None) -> None:
        self.registered: List[RegisteredDistribution] = list(registered or [])
        self.calls: List[tuple] = []
        self.fail_queries: Optional[Exception] = None
        self.fail_commands: Optional[Exception] = None

    def _check_query(self) -> None:
        if self.fail_queries is not None:
            raise self.fail_queries

    def _command(self, action: str, name: str) -> None:
        self.calls.append((action, name))
        if self.fail_commands is not None:
            raise self.fail_commands

    def is_running(self, name: str) -> bool:
        return name in self.get_all_running_names()

    def get_all_registered(self) -> List[RegisteredDistribution]:
        self._check_query()
        return [dataclasses.replace(info) for info in self.registered]

    def get_all_running_names(self) -> Set[str]:
        self._check_query()
        return {info.name for info in self.registered if info.running}

    def set_running(self, name: str, running: bool) -> None:
        for info in self.registered:
            if info.name == name:
                info.running = running

    def install(self, name: str) -> None:
        self._command("install", name)

    def launch(self, name: str) -> None:
        self._command("launch", name)

    def terminate(self, name: str) -> None:
        self._command("terminate", name)

    def unregister(self, name: str) -> None:
        self._command("unregister", name)


class StaticDefinitionSource:
    def __init__(self, definitions: Dict[str, DistributionDefinition]) -> None:
        self.definitions = definitions
        self.loads = 0
        self.error: Optional[Exception] = None

    def load(self) -> Dict[str, DistributionDefinition]:
        self.loads += 1
        if self.error is not None:
            raise self.error
        return dict(self.definitions)


def make_definitions(*names: str) -> Dict[str, DistributionDefinition]:
    return {
        name: DistributionDefinition(
            name=name,
            friendly_name=f"{name} Linux",
            logo=f"logo-{name}".encode("utf-8"),
            terminal_profile_guid=f"{{00000000-0000-0000-0000-{index:012d}}}",
        )
        for index, name in enumerate(names)
    }


@pytest.fixture
def mediator() -> FakeHostMediator:
    return FakeHostMediator()


@pytest.fixture
def definition_source() -> StaticDefinitionSource:
    return StaticDefinitionSource(make_definitions("A", "B", "C"))


@pytest.fixture
def catalog(definition_source) -> Catalog:
    return Catalog(definition_source)


@pytest.fixture
def manager(mediator, catalog):
    # Long interval: tests drive ticks by hand through manager.poller.tick().
    mgr = LifecycleManager(mediator, catalog, poll_interval=3600)
    yield mgr
    mgr.close()


@pytest.fixture
def catalog_file(tmp_path):
    """Create a temporary distributions.yaml with one logo file."""
    (tmp_path / "logos").mkdir()
    (tmp_path / "logos" / "ubuntu.png").write_bytes(b"\x89PNG-ubuntu")
    config = {
        "distributions": {
            "Ubuntu": {
                "friendly_name": "Ubuntu",
                "logo": "logos/ubuntu.png",
                "terminal_profile_guid": "{51855cb2-8cce-5362-8f54-464b92b32386}",
            },
            "Debian": {"friendly_name": "Debian GNU/Linux"},
        }
    }
    path = tmp_path / "distributions.yaml"
    path.write_text(yaml.dump(config))
    return path


@pytest.fixture
def mock_env(monkeypatch):
    """Helper to set environment variables for tests."""

    def _set(**kwargs):
        for key, value in kwargs.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, str(value))

    return _set


# All environment variables that parse_env() reads — used to ensure a clean slate.
_PARSE_ENV_VARS = [
    "WSL_EXE",
    "WSL_CATALOG_PATH",
    "WSL_CATALOG_URL",
    "WSL_CATALOG_TIMEOUT",
    "WSL_POLL_INTERVAL",
    "WSL_POLL_WORKERS",
    "LOG_VERBOSE",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Clear all environment variables that parse_env() reads."""
    for key in _PARSE_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_log_verbosity(monkeypatch):
    """cli.main() switches DEBUG output process-wide; undo it after each test."""
    import wslmgr.utils

    monkeypatch.setattr(wslmgr.utils, "_LOG_VERBOSE", wslmgr.utils._LOG_VERBOSE)
