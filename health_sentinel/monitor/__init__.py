"""Health classification engine.

Public API
----------
- :class:`HealthMonitor`: Periodic probe loop and public read API
- :class:`HealthClassifier`: Per-target hysteresis state machine
- :class:`TargetSetManager`: Monitored targets and deferred refresh
- :class:`SnapshotPublisher` / :class:`Snapshot`: Lock-free published state
- :class:`ChangeNotifier`: Publish-and-notify on classification change
- :class:`TargetProvider`, :class:`Prober`, :class:`Listener`: Collaborator contracts
"""

from health_sentinel.monitor.classifier import (
    HealthClassifier,
    PendingRound,
    RoundOutcome,
    TargetState,
)
from health_sentinel.monitor.monitor import HealthMonitor
from health_sentinel.monitor.notifier import ChangeNotifier
from health_sentinel.monitor.snapshot import Snapshot, SnapshotPublisher
from health_sentinel.monitor.targets import TargetDiff, TargetSetManager
from health_sentinel.monitor.types import Listener, Prober, ProbeResult, TargetProvider

__all__ = [
    "ChangeNotifier",
    "HealthClassifier",
    "HealthMonitor",
    "Listener",
    "PendingRound",
    "ProbeResult",
    "Prober",
    "RoundOutcome",
    "Snapshot",
    "SnapshotPublisher",
    "TargetDiff",
    "TargetProvider",
    "TargetSetManager",
    "TargetState",
]
