"""Tests for the OpenTelemetry metrics handle."""

from __future__ import annotations

from typing import Any, Dict

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from health_sentinel.telemetry import HealthMetrics, NoOpMetrics, TelemetryConfig


def _collect(reader: InMemoryMetricReader) -> Dict[str, Any]:
    """Map metric name to its data points."""
    out: Dict[str, Any] = {}
    data = reader.get_metrics_data()
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                out[metric.name] = list(metric.data.data_points)
    return out


def _handle() -> tuple:
    reader = InMemoryMetricReader()
    provider = MeterProvider(metric_readers=[reader])
    metrics = HealthMetrics(provider.get_meter("test"), attributes={"monitor": "apiservers"})
    return metrics, reader


class TestHealthMetrics:
    def test_transition_counters_partitioned_by_target(self) -> None:
        metrics, reader = _handle()
        metrics.healthy_target("a")
        metrics.healthy_target("a")
        metrics.unhealthy_target("b")

        points = _collect(reader)
        healthy = {p.attributes["target"]: p.value for p in points["health_monitor.healthy_target_total"]}
        unhealthy = {
            p.attributes["target"]: p.value for p in points["health_monitor.unhealthy_target_total"]
        }
        assert healthy == {"a": 2}
        assert unhealthy == {"b": 1}

    def test_attributes_are_attached(self) -> None:
        metrics, reader = _handle()
        metrics.unhealthy_target("b")
        (point,) = _collect(reader)["health_monitor.unhealthy_target_total"]
        assert point.attributes["monitor"] == "apiservers"

    def test_current_healthy_gauge(self) -> None:
        metrics, reader = _handle()
        metrics.current_healthy_targets(3)
        (point,) = _collect(reader)["health_monitor.current_healthy_targets"]
        assert point.value == 3

        metrics.current_healthy_targets(1)
        (point,) = _collect(reader)["health_monitor.current_healthy_targets"]
        assert point.value == 1

    def test_separate_handles_do_not_share_state(self) -> None:
        first, first_reader = _handle()
        second, second_reader = _handle()
        first.current_healthy_targets(5)
        second.current_healthy_targets(2)
        assert _collect(first_reader)["health_monitor.current_healthy_targets"][0].value == 5
        assert _collect(second_reader)["health_monitor.current_healthy_targets"][0].value == 2


class TestNoOpMetrics:
    def test_accepts_every_call(self) -> None:
        metrics = NoOpMetrics()
        metrics.healthy_target("a")
        metrics.unhealthy_target("a")
        metrics.current_healthy_targets(0)


class TestTelemetryConfig:
    def test_disabled_is_noop(self) -> None:
        config = TelemetryConfig(enabled=False)
        config.initialize()
        assert config.service_name == "health-sentinel"
