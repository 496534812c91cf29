"""Periodic health monitor for a dynamic set of network targets.

Runs an asyncio background task that, once per interval, refreshes the target
list if asked to, probes every target concurrently, waits for all of them,
feeds the batch to the hysteresis classifier and publishes a new snapshot
when the classification changed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from health_sentinel.errors import ConfigurationError
from health_sentinel.monitor.classifier import HealthClassifier, PendingRound, TargetState
from health_sentinel.monitor.notifier import ChangeNotifier
from health_sentinel.monitor.snapshot import Snapshot, SnapshotPublisher
from health_sentinel.monitor.targets import TargetSetManager
from health_sentinel.monitor.types import Listener, Prober, ProbeResult, TargetProvider
from health_sentinel.telemetry.metrics import NoOpMetrics

logger = logging.getLogger(__name__)


class HealthMonitor:
    """Background health monitor.

    Parameters
    ----------
    provider:
        Source of targets.  The monitor registers itself as a listener on it
        so that provider-side changes schedule a refresh.
    prober:
        Performs a single health check; must bound its own duration.
    unhealthy_threshold:
        Consecutive failed probes after which a target is unhealthy.
    healthy_threshold:
        Consecutive successful probes after which a target is healthy.
    probe_timeout:
        Seconds the prober is allowed per check.  Informational here; the
        prober enforces it.
    probe_interval:
        Seconds between the end of one round and the start of the next.
    metrics:
        Metrics handle (default :class:`NoOpMetrics`).
    """

    def __init__(
        self,
        provider: TargetProvider,
        prober: Prober,
        *,
        unhealthy_threshold: int,
        healthy_threshold: int,
        probe_timeout: float,
        probe_interval: float,
        metrics: Optional[NoOpMetrics] = None,
    ) -> None:
        if unhealthy_threshold < 1:
            raise ConfigurationError(f"unhealthy_threshold must be >= 1, got {unhealthy_threshold}")
        if healthy_threshold < 1:
            raise ConfigurationError(f"healthy_threshold must be >= 1, got {healthy_threshold}")
        if probe_timeout <= 0:
            raise ConfigurationError(f"probe_timeout must be > 0, got {probe_timeout}")
        if probe_interval <= 0:
            raise ConfigurationError(f"probe_interval must be > 0, got {probe_interval}")

        self._prober = prober
        self._probe_timeout = probe_timeout
        self._probe_interval = probe_interval
        self._metrics = metrics if metrics is not None else NoOpMetrics()

        self._target_set = TargetSetManager(provider)
        self._classifier = HealthClassifier(unhealthy_threshold, healthy_threshold)
        self._publisher = SnapshotPublisher()
        self._notifier = ChangeNotifier(self._publisher)

        self._task: Optional[asyncio.Task[None]] = None
        self._stopped = asyncio.Event()

        provider.add_listener(self)

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def unhealthy_threshold(self) -> int:
        return self._classifier.unhealthy_threshold

    @property
    def healthy_threshold(self) -> int:
        return self._classifier.healthy_threshold

    @property
    def probe_interval(self) -> float:
        return self._probe_interval

    @property
    def probe_timeout(self) -> float:
        return self._probe_timeout

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def monitored_targets(self) -> Tuple[str, ...]:
        return self._target_set.targets

    def read(self) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        """Return the published ``(healthy, unhealthy)`` targets.

        Safe to call from any thread or coroutine at any time.
        """
        return self._publisher.read()

    def snapshot(self) -> Snapshot:
        return self._publisher.current()

    def state_of(self, target: str) -> TargetState:
        """Classification of *target* in the published snapshot."""
        snapshot = self._publisher.current()
        if target in snapshot.healthy:
            return TargetState.HEALTHY
        if target in snapshot.unhealthy:
            return TargetState.UNHEALTHY
        return TargetState.UNCLASSIFIED

    def streaks(self, target: str) -> Tuple[int, int]:
        """Committed ``(success_streak, failure_streak)`` for *target*."""
        return self._classifier.streaks(target)

    def request_refresh(self) -> None:
        """Refresh the target list at the start of the next round."""
        self._target_set.request_refresh()

    def notify(self) -> None:
        """Listener hook for target providers; schedules a refresh."""
        self.request_refresh()

    def add_listener(self, listener: Listener) -> None:
        """Register *listener* to be told when the classification changes.

        Not safe to call after :meth:`start`.
        """
        self._notifier.add_listener(listener)

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Launch :meth:`run` as a background task."""
        if self.running:
            logger.warning("Health monitor already running.")
            return
        self._stopped.clear()
        self._task = asyncio.create_task(self.run(), name="health-monitor")
        self._task.add_done_callback(self._on_task_done)

    async def stop(self) -> None:
        """Signal the loop to stop and wait for the current round to finish.

        In-flight probes are not cancelled.
        """
        self._stopped.set()
        if self._task is not None:
            await asyncio.wait({self._task})
            self._task = None

    async def run(self) -> None:
        """Probe rounds until :meth:`stop` is called.

        An exception raised by a listener propagates out of this coroutine.
        """
        logger.info(
            "Starting the health monitor with interval=%.1fs, timeout=%.1fs, "
            "healthy_threshold=%d, unhealthy_threshold=%d",
            self._probe_interval,
            self._probe_timeout,
            self._classifier.healthy_threshold,
            self._classifier.unhealthy_threshold,
        )
        try:
            while not self._stopped.is_set():
                await self.run_round()
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=self._probe_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            logger.info("Shutting down the health monitor")

    async def run_round(self) -> bool:
        """Run one complete round.  Returns ``True`` if listeners were notified."""
        try:
            self._target_set.reconcile_if_pending(self._classifier.forget)
            results = await self._probe_all(self._target_set.targets)
            pending = self._classifier.evaluate(results)
            self._record(pending, results)
            self._classifier.commit(pending)
        except Exception:
            logger.exception("Health check round failed; previous classification kept")
            return False

        return self._notifier.commit(self._classifier.healthy, self._classifier.unhealthy)

    # ── Internals ────────────────────────────────────────────────────────

    async def _probe_all(self, targets: Sequence[str]) -> List[ProbeResult]:
        if not targets:
            return []
        return list(await asyncio.gather(*(self._probe_one(t) for t in targets)))

    async def _probe_one(self, target: str) -> ProbeResult:
        try:
            await self._prober.probe(target)
        except Exception as exc:
            return ProbeResult(target, exc)
        return ProbeResult(target)

    def _record(self, pending: PendingRound, results: Sequence[ProbeResult]) -> None:
        outcome = pending.outcome
        for target in outcome.became_healthy:
            logger.debug("Target %s became healthy", target)
            self._metrics.healthy_target(target)
        for target, error in outcome.became_unhealthy.items():
            logger.info("Target %s became unhealthy due to %s", target, error)
            self._metrics.unhealthy_target(target)
        self._metrics.current_healthy_targets(len(pending.healthy))

        if logger.isEnabledFor(logging.DEBUG):
            failed = sum(1 for r in results if not r.ok)
            logger.debug(
                "Round complete: %d probed, %d failed, %d transitions",
                len(results),
                failed,
                outcome.transitions,
            )

    def _on_task_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Health monitor stopped by an unhandled error", exc_info=exc)
