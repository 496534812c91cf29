"""Custom exception classes for Health Sentinel."""

from typing import Optional


class SentinelBaseError(Exception):
    """Base class for all custom exceptions in Health Sentinel."""

    pass


class ConfigurationError(SentinelBaseError):
    """Raised when loading or validating configuration fails.

    Also raised when a dependency needed to build the probe transport
    (CA bundle, client certificate) cannot be loaded.
    """

    pass


class ProbeError(SentinelBaseError):
    """
    Raised by a prober when a single health check fails.

    The monitor counts these; it never inspects the cause.
    """

    def __init__(
        self,
        message: str,
        target: Optional[str] = None,
        orig_exc: Optional[Exception] = None,
    ):
        self.target = target
        self.orig_exc = orig_exc

        full_msg = "Probe failed"
        if target:
            full_msg += f" (target: {target})"
        full_msg += f": {message}"
        if orig_exc:
            full_msg += f" (original error: {type(orig_exc).__name__})"
        super().__init__(full_msg)
