"""Consumer-facing wrapper around one registered distribution."""

from __future__ import annotations

import threading
from typing import Callable, FrozenSet, List, Optional

from wslmgr.mediator import HostMediator
from wslmgr.models import RegisteredDistribution
from wslmgr.poller import StatePoller
from wslmgr.utils import log

StateListener = Callable[["DistributionHandle"], None]


class DistributionHandle:
    """Tracks the running state of one distribution from poll events.

    The handle subscribes to the poller when it is created and must be
    unsubscribed before it is dropped.
    """

    def __init__(self, info: RegisteredDistribution, mediator: HostMediator, poller: StatePoller) -> None:
        self.info = info
        self._mediator = mediator
        self._poller = poller
        self._listeners: List[StateListener] = []
        self._lock = threading.Lock()
        poller.subscribe(self._on_running_names)
        self._subscribed = True

    def __repr__(self) -> str:
        state = "running" if self.info.running else "stopped"
        return f"DistributionHandle({self.info.name!r}, {state})"

    @property
    def name(self) -> str:
        return self.info.name

    @property
    def running(self) -> bool:
        return self.info.running

    @property
    def friendly_name(self) -> Optional[str]:
        return self.info.friendly_name

    @property
    def display_name(self) -> str:
        return self.info.display_name

    @property
    def subscribed(self) -> bool:
        return self._subscribed

    def add_state_listener(self, listener: StateListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_state_listener(self, listener: StateListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def unsubscribe(self) -> None:
        if not self._subscribed:
            return
        self._poller.unsubscribe(self._on_running_names)
        with self._lock:
            self._listeners.clear()
        self._subscribed = False

    def _on_running_names(self, running_names: FrozenSet[str]) -> None:
        running = self.info.name in running_names
        with self._lock:
            if running == self.info.running:
                return
            self.info.running = running
            listeners = list(self._listeners)
        log("DEBUG", f"Distribution {self.info.name} is now {'running' if running else 'stopped'}")
        for listener in listeners:
            try:
                listener(self)
            except Exception as exc:
                log("ERROR", f"State listener for {self.info.name} failed: {exc}")

    def is_running(self) -> bool:
        return self._mediator.is_running(self.info.name)

    def launch(self) -> None:
        self._mediator.launch(self.info.name)

    def terminate(self) -> None:
        self._mediator.terminate(self.info.name)

    def unregister(self) -> None:
        self._mediator.unregister(self.info.name)
