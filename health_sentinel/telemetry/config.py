"""Telemetry configuration.

Installs an OpenTelemetry ``MeterProvider`` with an OTLP exporter.  When
telemetry is disabled the global no-op provider stays in place and every
instrument created by :class:`~health_sentinel.telemetry.metrics.HealthMetrics`
records nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from opentelemetry import metrics as otel_metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

logger = logging.getLogger(__name__)


@dataclass
class TelemetryConfig:
    """Configuration for OpenTelemetry integration.

    Attributes
    ----------
    enabled:
        Master switch.  When ``False``, nothing is exported.
    otlp_endpoint:
        OTLP collector endpoint (gRPC).
    service_name:
        Name reported to the OTel collector.
    """

    enabled: bool = False
    otlp_endpoint: str = "http://localhost:4317"
    service_name: str = "health-sentinel"

    def initialize(self) -> None:
        """Set up the OTel MeterProvider."""
        if not self.enabled:
            logger.debug("Telemetry disabled; skipping OTel initialization")
            return

        resource = Resource.create({"service.name": self.service_name})
        reader = PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=self.otlp_endpoint))
        otel_metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

        logger.info(
            "OpenTelemetry initialized: endpoint=%s, service=%s",
            self.otlp_endpoint,
            self.service_name,
        )
