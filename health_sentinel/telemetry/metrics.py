"""Metrics handles for the health monitor.

A handle is built once and passed into :class:`HealthMonitor`.  Nothing is
registered at import time, so several monitors can share one process and
tests can pass :class:`NoOpMetrics`.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from opentelemetry import metrics as otel_metrics
from opentelemetry.metrics import CallbackOptions, Observation

logger = logging.getLogger(__name__)

_METER_NAME = "health_sentinel"


def get_meter() -> Any:
    """Return the Health Sentinel meter from the global provider."""
    return otel_metrics.get_meter(_METER_NAME)


class NoOpMetrics:
    """Metrics handle that records nothing."""

    def healthy_target(self, target: str) -> None:
        pass

    def unhealthy_target(self, target: str) -> None:
        pass

    def current_healthy_targets(self, count: int) -> None:
        pass


class HealthMetrics(NoOpMetrics):
    """OpenTelemetry-backed metrics handle.

    Instruments
    -----------
    ``health_monitor.healthy_target_total``
        Counter, incremented each time a target becomes healthy.
    ``health_monitor.unhealthy_target_total``
        Counter, incremented each time a target becomes unhealthy.
    ``health_monitor.current_healthy_targets``
        Observable gauge with the healthy count after the latest round.
    """

    def __init__(self, meter: Optional[Any] = None, *, attributes: Optional[dict] = None) -> None:
        self._meter = meter if meter is not None else get_meter()
        self._attributes = dict(attributes or {})
        self._current_healthy = 0

        self._healthy_total = self._meter.create_counter(
            "health_monitor.healthy_target_total",
            description="Number of times a target became healthy, partitioned by target",
        )
        self._unhealthy_total = self._meter.create_counter(
            "health_monitor.unhealthy_target_total",
            description="Number of times a target became unhealthy, partitioned by target",
        )
        self._meter.create_observable_gauge(
            "health_monitor.current_healthy_targets",
            callbacks=[self._observe_current_healthy],
            description="Number of targets currently classified as healthy",
        )

    def healthy_target(self, target: str) -> None:
        self._healthy_total.add(1, {**self._attributes, "target": target})

    def unhealthy_target(self, target: str) -> None:
        self._unhealthy_total.add(1, {**self._attributes, "target": target})

    def current_healthy_targets(self, count: int) -> None:
        self._current_healthy = count

    def _observe_current_healthy(self, options: CallbackOptions) -> Iterable[Observation]:
        observations: List[Observation] = [Observation(self._current_healthy, self._attributes)]
        return observations
