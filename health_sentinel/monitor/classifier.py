"""Hysteresis state machine for target health.

Each target carries two streak counters, at most one of which is non-zero::

    UNCLASSIFIED ──(unhealthy_threshold failures)──► UNHEALTHY
         │                                            ▲    │
         │                    (unhealthy_threshold    │    │ (healthy_threshold
         │                     failures)              │    │  successes)
         └──(healthy_threshold successes)──► HEALTHY ─┘◄───┘

A streak stops growing once it reaches its threshold, so leaving a
classified state always takes a full run of opposite outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple

from health_sentinel.monitor.types import ProbeResult


class TargetState(Enum):
    """Observable classification of a monitored target."""

    UNCLASSIFIED = "unclassified"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class RoundOutcome:
    """What one batch of probe results changed."""

    became_healthy: List[str] = field(default_factory=list)
    became_unhealthy: Dict[str, BaseException] = field(default_factory=dict)

    @property
    def transitions(self) -> int:
        return len(self.became_healthy) + len(self.became_unhealthy)


@dataclass(frozen=True)
class PendingRound:
    """Classifier state computed from one round, not yet committed."""

    outcome: RoundOutcome
    healthy: FrozenSet[str]
    unhealthy: FrozenSet[str]
    success_streaks: Dict[str, int]
    failure_streaks: Dict[str, int]


class HealthClassifier:
    """Per-target streak counters plus the healthy/unhealthy working sets.

    Parameters
    ----------
    unhealthy_threshold:
        Consecutive failures after which a target is unhealthy.
    healthy_threshold:
        Consecutive successes after which a target is healthy.
    """

    def __init__(self, unhealthy_threshold: int, healthy_threshold: int) -> None:
        if unhealthy_threshold < 1 or healthy_threshold < 1:
            raise ValueError(
                "thresholds must be >= 1 "
                f"(unhealthy={unhealthy_threshold}, healthy={healthy_threshold})"
            )
        self.unhealthy_threshold = unhealthy_threshold
        self.healthy_threshold = healthy_threshold

        # Only non-zero streaks are stored.
        self._success_streaks: Dict[str, int] = {}
        self._failure_streaks: Dict[str, int] = {}
        self._healthy: Set[str] = set()
        self._unhealthy: Set[str] = set()

    # ── Read access ──────────────────────────────────────────────────────

    @property
    def healthy(self) -> FrozenSet[str]:
        return frozenset(self._healthy)

    @property
    def unhealthy(self) -> FrozenSet[str]:
        return frozenset(self._unhealthy)

    def streaks(self, target: str) -> Tuple[int, int]:
        """Return ``(success_streak, failure_streak)`` for *target*."""
        return (
            self._success_streaks.get(target, 0),
            self._failure_streaks.get(target, 0),
        )

    def state_of(self, target: str) -> TargetState:
        if target in self._healthy:
            return TargetState.HEALTHY
        if target in self._unhealthy:
            return TargetState.UNHEALTHY
        return TargetState.UNCLASSIFIED

    # ── Mutation ─────────────────────────────────────────────────────────

    def evaluate(self, results: Iterable[ProbeResult]) -> PendingRound:
        """Apply one round of probe results to copies of the current state.

        Nothing changes until the returned round is passed to :meth:`commit`,
        so a round that fails later can simply be dropped.
        """
        successes = dict(self._success_streaks)
        failures = dict(self._failure_streaks)
        healthy = set(self._healthy)
        unhealthy = set(self._unhealthy)
        outcome = RoundOutcome()

        for result in results:
            target = result.target
            if result.error is not None:
                successes.pop(target, None)
                streak = failures.get(target, 0)
                if streak < self.unhealthy_threshold:
                    streak += 1
                    failures[target] = streak
                    if streak == self.unhealthy_threshold:
                        unhealthy.add(target)
                        healthy.discard(target)
                        outcome.became_unhealthy[target] = result.error
                continue

            failures.pop(target, None)
            streak = successes.get(target, 0)
            if streak < self.healthy_threshold:
                streak += 1
                successes[target] = streak
                if streak == self.healthy_threshold:
                    healthy.add(target)
                    unhealthy.discard(target)
                    outcome.became_healthy.append(target)

        return PendingRound(
            outcome=outcome,
            healthy=frozenset(healthy),
            unhealthy=frozenset(unhealthy),
            success_streaks=successes,
            failure_streaks=failures,
        )

    def commit(self, pending: PendingRound) -> None:
        """Make an evaluated round the current state."""
        self._success_streaks = dict(pending.success_streaks)
        self._failure_streaks = dict(pending.failure_streaks)
        self._healthy = set(pending.healthy)
        self._unhealthy = set(pending.unhealthy)

    def update(self, results: Iterable[ProbeResult]) -> RoundOutcome:
        """Evaluate and commit one round in a single step."""
        pending = self.evaluate(results)
        self.commit(pending)
        return pending.outcome

    def forget(self, targets: Iterable[str]) -> None:
        """Drop counters and set membership for *targets*."""
        for target in targets:
            self._success_streaks.pop(target, None)
            self._failure_streaks.pop(target, None)
            self._healthy.discard(target)
            self._unhealthy.discard(target)
