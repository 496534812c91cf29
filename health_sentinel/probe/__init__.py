"""Probe transports."""

from health_sentinel.probe.http import HttpProber, build_ssl_context

__all__ = ["HttpProber", "build_ssl_context"]
