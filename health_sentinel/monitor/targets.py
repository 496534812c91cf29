"""Monitored-target bookkeeping and deferred refresh."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Set, Tuple

from health_sentinel.monitor.types import TargetProvider

logger = logging.getLogger(__name__)


@dataclass
class TargetDiff:
    """Targets added and removed by one reconciliation."""

    added: Set[str] = field(default_factory=set)
    removed: Set[str] = field(default_factory=set)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)

    def summary(self) -> str:
        return f"+{len(self.added)} -{len(self.removed)}"


def _dedupe(targets: Iterable[str]) -> List[str]:
    seen: Set[str] = set()
    out: List[str] = []
    for target in targets:
        if target not in seen:
            seen.add(target)
            out.append(target)
    return out


class TargetSetManager:
    """Holds the list of targets the monitor probes.

    :meth:`request_refresh` may be called from any thread or coroutine; it
    only raises a flag.  The monitor calls :meth:`reconcile_if_pending` at the
    start of each round, which is the only place the monitored list changes.

    Parameters
    ----------
    provider:
        Source of fresh target lists.
    initial:
        Initial monitored list.  Defaults to ``provider.current_targets()``.
    """

    def __init__(
        self,
        provider: TargetProvider,
        initial: Optional[Iterable[str]] = None,
    ) -> None:
        self._provider = provider
        if initial is None:
            initial = provider.current_targets()
        self._targets: List[str] = _dedupe(initial)

        self._lock = threading.Lock()
        self._refresh_pending = False

    @property
    def targets(self) -> Tuple[str, ...]:
        """The currently monitored targets, in provider order."""
        return tuple(self._targets)

    @property
    def refresh_pending(self) -> bool:
        with self._lock:
            return self._refresh_pending

    def request_refresh(self) -> None:
        """Schedule a target list refresh for the start of the next round."""
        with self._lock:
            self._refresh_pending = True

    def reconcile_if_pending(
        self,
        purge: Callable[[Set[str]], None],
    ) -> Optional[TargetDiff]:
        """Pull a fresh list from the provider if a refresh was requested.

        New targets join the monitored list unclassified.  Removed targets are
        dropped from the list and handed to *purge* so their counters and set
        membership disappear before any probe runs.

        Returns the diff, or ``None`` when no refresh was pending.
        """
        with self._lock:
            if not self._refresh_pending:
                return None

            fresh = _dedupe(self._provider.current_targets())
            fresh_set = set(fresh)
            current_set = set(self._targets)

            diff = TargetDiff(
                added=fresh_set - current_set,
                removed=current_set - fresh_set,
            )
            if diff.added:
                logger.debug("Health monitor observed new targets: %s", sorted(diff.added))
            if diff.removed:
                logger.debug(
                    "Health monitor will stop checking the following targets: %s",
                    sorted(diff.removed),
                )
                purge(diff.removed)

            self._targets = fresh
            self._refresh_pending = False
            return diff
