"""Configuration loading and validation for Health Sentinel."""

from health_sentinel.config.loader import expand_env_vars, load_sentinel_config, validate_config
from health_sentinel.config.schema import (
    MonitorSettings,
    ProbeSettings,
    SentinelConfig,
    ServerSettings,
    TargetsSettings,
    TelemetrySettings,
)
from health_sentinel.config.watcher import FileWatcher

__all__ = [
    "FileWatcher",
    "MonitorSettings",
    "ProbeSettings",
    "SentinelConfig",
    "ServerSettings",
    "TargetsSettings",
    "TelemetrySettings",
    "expand_env_vars",
    "load_sentinel_config",
    "validate_config",
]
