"""Periodic distribution state sync for wsl-distro-manager.

WSL raises no event when a distribution starts or stops, so the poller asks
the host for the running set on a fixed interval and pushes the whole set to
every subscriber.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from enum import Enum
from typing import Callable, FrozenSet, List, Optional

from wslmgr.constants import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_WORKERS
from wslmgr.exceptions import ManagerError
from wslmgr.mediator import HostMediator
from wslmgr.utils import log

StateCallback = Callable[[FrozenSet[str]], None]


class PollerState(Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING_TICK = "running-tick"
    STOPPED = "stopped"


class _Subscription:
    """One subscriber; deliveries to it are serialized and never go backwards."""

    def __init__(self, callback: StateCallback) -> None:
        self.callback = callback
        self.lock = threading.Lock()
        self.last_sequence = 0


class StatePoller:
    def __init__(
        self,
        mediator: HostMediator,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_workers: int = DEFAULT_POLL_WORKERS,
    ) -> None:
        self.mediator = mediator
        self.interval = interval
        self.state = PollerState.IDLE
        self._subscribers: List[_Subscription] = []
        self._subscribers_lock = threading.Lock()
        self._sequence = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="wsl-state-sync")
        self._pending: List[Future] = []

    def subscribe(self, callback: StateCallback) -> None:
        with self._subscribers_lock:
            self._subscribers.append(_Subscription(callback))

    def unsubscribe(self, callback: StateCallback) -> None:
        with self._subscribers_lock:
            for subscription in self._subscribers:
                if subscription.callback == callback:
                    self._subscribers.remove(subscription)
                    return

    @property
    def subscriber_count(self) -> int:
        with self._subscribers_lock:
            return len(self._subscribers)

    def start(self) -> None:
        if self.state is PollerState.STOPPED:
            raise ManagerError("State poller has been stopped and cannot be restarted")
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, daemon=True, name="WslStatePoller")
        self.state = PollerState.SCHEDULED
        self._thread.start()
        log("DEBUG", f"Distribution state polling started (every {self.interval}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        if self.state is PollerState.STOPPED:
            return
        self._stop.set()
        self.state = PollerState.STOPPED
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self._executor.shutdown(wait=False, cancel_futures=True)
        log("DEBUG", "Distribution state polling stopped")

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.tick()

    def tick(self) -> bool:
        """Query the host once and publish the running set.

        Returns False when the tick was skipped because the host call failed
        or the poller is stopped. Never raises.
        """
        if self._stop.is_set():
            return False
        self.state = PollerState.RUNNING_TICK
        try:
            try:
                running = frozenset(self.mediator.get_all_running_names())
            except Exception as exc:
                log("ERROR", f"Unable to raise distribution sync event due to an error: {exc}")
                return False
            self._publish(running)
            return True
        finally:
            if not self._stop.is_set():
                self.state = PollerState.SCHEDULED if self._thread is not None else PollerState.IDLE

    def _publish(self, running: FrozenSet[str]) -> None:
        with self._subscribers_lock:
            self._sequence += 1
            sequence = self._sequence
            subscribers = list(self._subscribers)
        pending: List[Future] = []
        for subscription in subscribers:
            try:
                pending.append(self._executor.submit(self._deliver, subscription, sequence, running))
            except RuntimeError:
                # Executor shut down by a concurrent stop()
                log("DEBUG", "State poller stopped while publishing; dropping event")
                break
        self._pending = pending

    @staticmethod
    def _deliver(subscription: _Subscription, sequence: int, running: FrozenSet[str]) -> None:
        with subscription.lock:
            # A pool worker may pick up an older tick after a newer one was delivered.
            if sequence <= subscription.last_sequence:
                log("DEBUG", f"Dropping stale distribution state event #{sequence}")
                return
            subscription.last_sequence = sequence
            try:
                subscription.callback(running)
            except Exception as exc:
                log("ERROR", f"Distribution state subscriber failed: {exc}")

    def wait_for_delivery(self, timeout: Optional[float] = None) -> bool:
        """Block until the subscribers of the last published tick have returned."""
        _, not_done = wait(self._pending, timeout=timeout)
        return not not_done
