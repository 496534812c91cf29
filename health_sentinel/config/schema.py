"""Pydantic configuration models for Health Sentinel."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from health_sentinel.constants import (
    DEFAULT_EXPECTED_STATUS,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PROBE_PATH,
    DEFAULT_PROBE_SCHEME,
    DEFAULT_WATCH_INTERVAL,
)

_STRICT = {"extra": "forbid"}


class MonitorSettings(BaseModel):
    """Hysteresis thresholds and probe timing.  All fields are required."""

    model_config = {"extra": "forbid", "frozen": True}

    unhealthy_threshold: int = Field(
        ...,
        ge=1,
        description="Consecutive failed probes after which a target is unhealthy.",
    )
    healthy_threshold: int = Field(
        ...,
        ge=1,
        description="Consecutive successful probes after which a target is healthy.",
    )
    probe_timeout: float = Field(..., gt=0, description="Per-probe time budget in seconds.")
    probe_interval: float = Field(..., gt=0, description="Seconds between probe rounds.")


class ProbeSettings(BaseModel):
    """HTTP probe transport settings."""

    model_config = _STRICT

    scheme: Literal["http", "https"] = DEFAULT_PROBE_SCHEME
    path: str = Field(default=DEFAULT_PROBE_PATH, description="Health endpoint path.")
    expected_status: int = Field(default=DEFAULT_EXPECTED_STATUS, ge=100, le=599)
    verify: bool = Field(default=True, description="Verify the target's TLS certificate.")
    ca_file: Optional[str] = Field(default=None, description="CA bundle for TLS verification.")
    cert_file: Optional[str] = Field(default=None, description="Client certificate (PEM).")
    key_file: Optional[str] = Field(default=None, description="Client private key (PEM).")

    @field_validator("path")
    @classmethod
    def _strip_path(cls, v: str) -> str:
        return v.strip().lstrip("/")

    @model_validator(mode="after")
    def _key_needs_cert(self) -> "ProbeSettings":
        if self.key_file and not self.cert_file:
            raise ValueError("key_file requires cert_file")
        return self


class TargetsSettings(BaseModel):
    """Where the targets come from: an inline list or a watched file."""

    model_config = _STRICT

    static: Optional[List[str]] = Field(default=None, description="Inline target list.")
    file: Optional[str] = Field(default=None, description="YAML file listing targets.")
    watch_interval: float = Field(
        default=DEFAULT_WATCH_INTERVAL,
        gt=0,
        description="Seconds between target file polls.",
    )

    @field_validator("static")
    @classmethod
    def _strip_targets(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return [t.strip() for t in v if t and t.strip()]

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "TargetsSettings":
        if (self.static is None) == (self.file is None):
            raise ValueError("exactly one of 'static' or 'file' must be set")
        return self


class ServerSettings(BaseModel):
    """Optional HTTP status API."""

    model_config = _STRICT

    enabled: bool = False
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)


class TelemetrySettings(BaseModel):
    """OpenTelemetry metrics export."""

    model_config = _STRICT

    enabled: bool = False
    otlp_endpoint: str = "http://localhost:4317"
    service_name: str = "health-sentinel"


class SentinelConfig(BaseModel):
    """Top-level configuration file."""

    model_config = _STRICT

    monitor: MonitorSettings
    targets: TargetsSettings
    probe: ProbeSettings = Field(default_factory=ProbeSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
