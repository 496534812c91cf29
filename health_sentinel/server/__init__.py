"""HTTP status API."""

from health_sentinel.server.app import create_app

__all__ = ["create_app"]
