"""
connectivity.py — Online/offline state shared by every view.

The monitor trusts whatever the platform tells it: the initial value comes
from settings.assume_online and transitions arrive through set_online()
(POST /api/v1/connectivity from the client's online/offline events). It
never polls and never probes the network, so a client that reports
"online" while behind a captive portal is believed.

Listeners are plain callables taking the new state. subscribe() returns
the function that removes the listener; callers own that cleanup.
"""

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class ConnectivityMonitor:
    def __init__(self, initial_online: bool = True) -> None:
        self._online = initial_online
        self._listeners: list[Listener] = []

    @property
    def online(self) -> bool:
        return self._online

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def set_online(self, online: bool) -> bool:
        """
        Record a platform signal. Returns True if it was a transition.

        Repeated signals with the same value are ignored and do not notify.
        """
        if online == self._online:
            return False
        self._online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for listener in list(self._listeners):
            try:
                listener(online)
            except Exception as exc:
                logger.error("Connectivity listener %r failed: %s", listener, exc)
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
