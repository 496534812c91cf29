"""Sentinel runtime service: builds and owns the monitor and its collaborators.

SentinelService turns a validated :class:`SentinelConfig` into a target
provider, a prober, a metrics handle and a :class:`HealthMonitor`, and runs
their startup/shutdown sequence.  It does not import the server or CLI
layers, so either can drive it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from health_sentinel.config.schema import SentinelConfig
from health_sentinel.monitor import HealthMonitor, TargetProvider
from health_sentinel.probe import HttpProber
from health_sentinel.sources import FileTargetProvider, StaticTargetProvider
from health_sentinel.telemetry import HealthMetrics, NoOpMetrics, TelemetryConfig

logger = logging.getLogger(__name__)


class ServiceState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    STOPPED = "stopped"


def build_provider(config: SentinelConfig) -> TargetProvider:
    """Create the target provider described by ``config.targets``."""
    targets = config.targets
    if targets.file is not None:
        return FileTargetProvider(targets.file, poll_interval=targets.watch_interval)
    return StaticTargetProvider(targets.static or [])


class SentinelService:
    """Owns one :class:`HealthMonitor` and everything it needs.

    Construction performs every fallible step (target file read, TLS
    setup), so configuration problems surface before any round runs.

    Usage::

        service = SentinelService(load_sentinel_config("config.yaml"))
        await service.start()
        healthy, unhealthy = service.monitor.read()
        await service.stop()
    """

    def __init__(
        self,
        config: SentinelConfig,
        *,
        provider: Optional[TargetProvider] = None,
        prober: Optional[Any] = None,
        metrics: Optional[NoOpMetrics] = None,
    ) -> None:
        self._config = config
        self._state = ServiceState.PENDING
        self._started_at: Optional[datetime] = None
        self._last_change_at: Optional[datetime] = None
        self._changes = 0

        monitor_cfg = config.monitor
        self._provider = provider if provider is not None else build_provider(config)
        self._prober = (
            prober
            if prober is not None
            else HttpProber.from_settings(config.probe, monitor_cfg.probe_timeout)
        )
        if metrics is None:
            metrics = HealthMetrics() if config.telemetry.enabled else NoOpMetrics()

        self._monitor = HealthMonitor(
            self._provider,
            self._prober,
            unhealthy_threshold=monitor_cfg.unhealthy_threshold,
            healthy_threshold=monitor_cfg.healthy_threshold,
            probe_timeout=monitor_cfg.probe_timeout,
            probe_interval=monitor_cfg.probe_interval,
            metrics=metrics,
        )
        self._monitor.add_listener(self)

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def config(self) -> SentinelConfig:
        return self._config

    @property
    def monitor(self) -> HealthMonitor:
        return self._monitor

    @property
    def provider(self) -> TargetProvider:
        return self._provider

    @property
    def state(self) -> ServiceState:
        return self._state

    # ── Lifecycle ────────────────────────────────────────────────────────

    @staticmethod
    def init_telemetry(config: SentinelConfig) -> None:
        """Install the OTel meter provider.  Call before building the service."""
        TelemetryConfig(**config.telemetry.model_dump()).initialize()

    async def start(self) -> None:
        if self._state == ServiceState.RUNNING:
            logger.warning("SentinelService already running.")
            return
        self._provider.start()
        self._monitor.start()
        self._state = ServiceState.RUNNING
        self._started_at = datetime.now(timezone.utc)
        logger.info(
            "SentinelService running with %d target(s).",
            len(self._monitor.monitored_targets),
        )

    async def stop(self) -> None:
        if self._state != ServiceState.RUNNING:
            logger.info("Stop requested but service is %s; nothing to do.", self._state.value)
            return
        try:
            await self._provider.stop()
            await self._monitor.stop()
        finally:
            close = getattr(self._prober, "aclose", None)
            if close is not None:
                await close()
            self._state = ServiceState.STOPPED
            logger.info("SentinelService stopped.")

    # ── Listener ─────────────────────────────────────────────────────────

    def notify(self) -> None:
        self._changes += 1
        self._last_change_at = datetime.now(timezone.utc)

    # ── Status ───────────────────────────────────────────────────────────

    def get_status(self) -> Dict[str, Any]:
        monitor = self._monitor
        snapshot = monitor.snapshot()
        monitored = monitor.monitored_targets
        classified = set(snapshot.healthy) | set(snapshot.unhealthy)
        return {
            "state": self._state.value,
            "running": monitor.running,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "last_change_at": self._last_change_at.isoformat() if self._last_change_at else None,
            "changes": self._changes,
            "healthy": list(snapshot.healthy),
            "unhealthy": list(snapshot.unhealthy),
            "monitored": list(monitored),
            "unclassified": sorted(t for t in monitored if t not in classified),
            "config": {
                "unhealthy_threshold": monitor.unhealthy_threshold,
                "healthy_threshold": monitor.healthy_threshold,
                "probe_timeout": monitor.probe_timeout,
                "probe_interval": monitor.probe_interval,
            },
        }
