"""OpenTelemetry integration for the health monitor."""

from health_sentinel.telemetry.config import TelemetryConfig
from health_sentinel.telemetry.metrics import HealthMetrics, NoOpMetrics, get_meter

__all__ = [
    "HealthMetrics",
    "NoOpMetrics",
    "TelemetryConfig",
    "get_meter",
]
