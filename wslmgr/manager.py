"""Distribution lifecycle management for wsl-distro-manager."""

from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional

from wslmgr.catalog import Catalog
from wslmgr.constants import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_WORKERS
from wslmgr.exceptions import ManagerError
from wslmgr.handle import DistributionHandle
from wslmgr.mediator import HostMediator
from wslmgr.models import DistributionDefinition, RegisteredDistribution
from wslmgr.poller import StateCallback, StatePoller
from wslmgr.utils import log

HandleFactory = Callable[[RegisteredDistribution], DistributionHandle]


class LifecycleManager:
    """Merges host registrations with the catalog and owns the current handles.

    Lifecycle commands are passed straight to the host and do not touch the
    handle list; callers see their effect after the next refresh or poll tick.
    """

    def __init__(
        self,
        mediator: HostMediator,
        catalog: Catalog,
        handle_factory: Optional[HandleFactory] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_workers: int = DEFAULT_POLL_WORKERS,
    ) -> None:
        self.mediator = mediator
        self.catalog = catalog
        self.poller = StatePoller(mediator, interval=poll_interval, max_workers=poll_workers)
        self._handle_factory = handle_factory or self._default_handle_factory
        self._handles: List[DistributionHandle] = []
        self._refresh_lock = threading.Lock()
        self._closed = False
        self.poller.start()

    def __enter__(self) -> "LifecycleManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _default_handle_factory(self, info: RegisteredDistribution) -> DistributionHandle:
        return DistributionHandle(info, self.mediator, self.poller)

    def refresh_registered(self) -> List[DistributionHandle]:
        with self._refresh_lock:
            if self._closed:
                raise ManagerError("Lifecycle manager is closed")
            # Host failures propagate here and leave the current handles in place.
            registered = self._get_merged_registrations()

            # The list is being rebuilt, so drop the old subscriptions first.
            for handle in self._handles:
                handle.unsubscribe()

            handles: List[DistributionHandle] = []
            for info in registered.values():
                try:
                    handles.append(self._handle_factory(info))
                except (ManagerError, OSError) as exc:
                    log("ERROR", f"Unable to add the distribution: {info.name}: {exc}")

            self._handles = handles
            log("DEBUG", f"Refreshed {len(handles)} registered distributions")
            return list(handles)

    def get_available_to_install(self) -> List[DistributionDefinition]:
        definitions = self.catalog.get_definitions()
        registered_names = {info.name.casefold() for info in self.mediator.get_all_registered()}
        available = [
            definition for definition in definitions.values() if definition.name.casefold() not in registered_names
        ]
        available.sort(key=lambda definition: definition.name.casefold())
        return available

    def get_registered(self, name: str) -> Optional[DistributionHandle]:
        for handle in self._handles:
            if handle.name == name:
                return handle
        return None

    def get_registered_info(self, name: str) -> Optional[RegisteredDistribution]:
        """Query the host for one distribution, merged with catalog metadata."""
        return self._get_merged_registrations().get(name)

    @property
    def handles(self) -> List[DistributionHandle]:
        return list(self._handles)

    def is_running(self, name: str) -> bool:
        return self.mediator.is_running(name)

    def install(self, name: str) -> None:
        self.mediator.install(name)

    def launch(self, name: str) -> None:
        self.mediator.launch(name)

    def terminate(self, name: str) -> None:
        self.mediator.terminate(name)

    def unregister(self, name: str) -> None:
        self.mediator.unregister(name)

    def subscribe(self, callback: StateCallback) -> None:
        self.poller.subscribe(callback)

    def unsubscribe(self, callback: StateCallback) -> None:
        self.poller.unsubscribe(callback)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with self._refresh_lock:
            for handle in self._handles:
                handle.unsubscribe()
            self._handles = []
        self.poller.stop()

    def _get_merged_registrations(self) -> Dict[str, RegisteredDistribution]:
        """Fill in catalog metadata (friendly name, logo, terminal profile) for known names."""
        definitions = self.catalog.get_definitions()
        merged: Dict[str, RegisteredDistribution] = {}
        for info in self.mediator.get_all_registered():
            if info.name in merged:
                log("WARN", f"Host reported distribution {info.name} more than once; ignoring duplicate")
                continue
            definition = definitions.get(info.name)
            if definition is not None:
                info.merge(definition)
            merged[info.name] = info
        return merged
