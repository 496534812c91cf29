"""Immutable, atomically swapped view of the current classification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Tuple


@dataclass(frozen=True)
class Snapshot:
    """Sorted healthy and unhealthy target sequences, published together."""

    healthy: Tuple[str, ...] = ()
    unhealthy: Tuple[str, ...] = ()

    @classmethod
    def build(cls, healthy: Iterable[str], unhealthy: Iterable[str]) -> "Snapshot":
        return cls(healthy=tuple(sorted(healthy)), unhealthy=tuple(sorted(unhealthy)))

    def as_sets(self) -> Tuple[FrozenSet[str], FrozenSet[str]]:
        return frozenset(self.healthy), frozenset(self.unhealthy)

    def to_dict(self) -> dict:
        return {"healthy": list(self.healthy), "unhealthy": list(self.unhealthy)}


_EMPTY = Snapshot()


class SnapshotPublisher:
    """Holds the externally visible :class:`Snapshot`.

    :meth:`publish` replaces the whole snapshot by rebinding one attribute;
    :meth:`read` is a single attribute load.  Readers never block and never
    see an old healthy list next to a new unhealthy list.
    """

    def __init__(self) -> None:
        self._current: Snapshot = _EMPTY
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of snapshots published so far."""
        return self._generation

    def publish(self, healthy: Iterable[str], unhealthy: Iterable[str]) -> Snapshot:
        """Materialize fresh sequences from the working sets and swap them in."""
        snapshot = Snapshot.build(healthy, unhealthy)
        self._current = snapshot
        self._generation += 1
        return snapshot

    def current(self) -> Snapshot:
        return self._current

    def read(self) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        """Return ``(healthy, unhealthy)`` from one consistent snapshot."""
        snapshot = self._current
        return snapshot.healthy, snapshot.unhealthy
