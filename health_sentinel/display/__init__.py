"""Logging setup."""

from health_sentinel.display.logging_config import setup_logging

__all__ = ["setup_logging"]
