"""Runtime service layer."""

from health_sentinel.runtime.service import SentinelService, ServiceState, build_provider

__all__ = ["SentinelService", "ServiceState", "build_provider"]
