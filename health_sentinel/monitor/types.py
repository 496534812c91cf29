"""Collaborator contracts and value types used by the health monitor."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one probe against one target.

    ``error`` is ``None`` on success.  Its content only matters for logging;
    the classifier counts failures without looking at the cause.
    """

    target: str
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@runtime_checkable
class Listener(Protocol):
    """Receives a payload-free "re-check soon" signal."""

    def notify(self) -> None: ...


@runtime_checkable
class Prober(Protocol):
    """Performs one health check against a target.

    Returns normally on success and raises on any failure.  The call must
    finish within its own time budget; the monitor does not add a timeout.
    """

    async def probe(self, target: str) -> None: ...


class TargetProvider(abc.ABC):
    """Source of the targets to monitor.

    Providers that can announce changes override :meth:`add_listener` and,
    if they watch something, :meth:`start` and :meth:`stop`.  The defaults
    do nothing, so a static provider needs no extra code.
    """

    @abc.abstractmethod
    def current_targets(self) -> Sequence[str]:
        """Return the current list of target identifiers."""

    def add_listener(self, listener: Listener) -> None:
        """Register *listener* to be notified when the target list changes."""
        return None

    def start(self) -> None:
        """Begin watching for changes.  Called with a running event loop."""
        return None

    async def stop(self) -> None:
        """Stop watching for changes."""
        return None
