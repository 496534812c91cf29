"""
Health Sentinel - hysteresis-based health classification for network targets.

Health Sentinel periodically probes a dynamic set of targets, classifies each
one as healthy or unhealthy once it has produced a sustained run of identical
outcomes, and publishes the result as an immutable snapshot that any number of
readers can consume without locking.
"""

from health_sentinel.constants import SERVER_NAME, SERVER_VERSION

__version__ = SERVER_VERSION
__app_name__ = SERVER_NAME

__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "__version__",
    "__app_name__",
]
