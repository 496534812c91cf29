"""Publish-and-notify step run at the end of every round."""

from __future__ import annotations

import logging
from typing import AbstractSet, List, Tuple

from health_sentinel.monitor.snapshot import SnapshotPublisher
from health_sentinel.monitor.types import Listener

logger = logging.getLogger(__name__)


class ChangeNotifier:
    """Publishes a new snapshot and signals listeners when classification changes.

    Listeners are called synchronously, in registration order.  Exceptions
    raised by a listener are not caught here.
    """

    def __init__(self, publisher: SnapshotPublisher) -> None:
        self._publisher = publisher
        self._listeners: List[Listener] = []

    @property
    def listeners(self) -> Tuple[Listener, ...]:
        return tuple(self._listeners)

    def add_listener(self, listener: Listener) -> None:
        """Register *listener*.  Must not be called once the monitor is running."""
        self._listeners.append(listener)

    def commit(self, healthy: AbstractSet[str], unhealthy: AbstractSet[str]) -> bool:
        """Compare the working sets against the published snapshot.

        Returns ``True`` if a new snapshot was published and listeners were
        notified, ``False`` if nothing changed.
        """
        published_healthy, published_unhealthy = self._publisher.current().as_sets()
        healthy_changed = published_healthy != healthy
        unhealthy_changed = published_unhealthy != unhealthy
        if not (healthy_changed or unhealthy_changed):
            return False

        snapshot = self._publisher.publish(healthy, unhealthy)
        if unhealthy_changed:
            logger.info("Observed the following unhealthy targets: %s", list(snapshot.unhealthy))
        if healthy_changed:
            logger.info("Observed the following healthy targets: %s", list(snapshot.healthy))

        for listener in self._listeners:
            listener.notify()
        return True
