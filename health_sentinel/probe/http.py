"""HTTP(S) health probe.

Sends ``GET {scheme}://{target}/{path}`` and treats anything other than the
expected status code as a failed probe.  Transport errors, timeouts, name
resolution failures and malformed targets are all reported the same way, as
:class:`ProbeError`.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any, Optional, Union

import httpx

from health_sentinel.config.schema import ProbeSettings
from health_sentinel.constants import (
    DEFAULT_EXPECTED_STATUS,
    DEFAULT_PROBE_PATH,
    DEFAULT_PROBE_SCHEME,
)
from health_sentinel.errors import ConfigurationError, ProbeError

logger = logging.getLogger(__name__)


def build_ssl_context(
    *,
    verify: bool = True,
    ca_file: Optional[str] = None,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
) -> Union[ssl.SSLContext, bool]:
    """Build the TLS configuration handed to :class:`httpx.AsyncClient`.

    Returns ``False`` when verification is disabled and no client
    certificate is needed.

    Raises:
        ConfigurationError: If a CA bundle or client certificate cannot be
            loaded.
    """
    if not verify and not cert_file:
        return False

    try:
        ctx = ssl.create_default_context(cafile=ca_file)
        if not verify:
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        if cert_file:
            ctx.load_cert_chain(certfile=cert_file, keyfile=key_file)
    except (OSError, ssl.SSLError) as exc:
        raise ConfigurationError(f"Cannot build TLS configuration for probes: {exc}") from exc
    return ctx


class HttpProber:
    """Async HTTP prober.

    Parameters
    ----------
    timeout:
        Per-probe time budget in seconds (connect, read, write and pool).
    scheme:
        ``https`` (default) or ``http``.
    path:
        Health endpoint path, without the leading slash.
    expected_status:
        The only status code that counts as healthy.
    verify:
        TLS configuration; see :func:`build_ssl_context`.
    transport:
        Optional custom ``httpx`` transport (used by tests).
    """

    def __init__(
        self,
        timeout: float,
        *,
        scheme: str = DEFAULT_PROBE_SCHEME,
        path: str = DEFAULT_PROBE_PATH,
        expected_status: int = DEFAULT_EXPECTED_STATUS,
        verify: Union[ssl.SSLContext, bool] = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._scheme = scheme
        self._path = path.lstrip("/")
        self._expected_status = expected_status
        self._timeout = timeout

        client_kwargs: dict[str, Any] = {
            "timeout": httpx.Timeout(timeout),
            "verify": verify,
            "follow_redirects": False,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

    @classmethod
    def from_settings(cls, settings: ProbeSettings, timeout: float) -> "HttpProber":
        """Build a prober from validated settings.  TLS errors are fatal."""
        verify = build_ssl_context(
            verify=settings.verify,
            ca_file=settings.ca_file,
            cert_file=settings.cert_file,
            key_file=settings.key_file,
        )
        return cls(
            timeout,
            scheme=settings.scheme,
            path=settings.path,
            expected_status=settings.expected_status,
            verify=verify,
        )

    def url_for(self, target: str) -> str:
        return f"{self._scheme}://{target}/{self._path}"

    async def probe(self, target: str) -> None:
        """Check *target* once.  Raises :class:`ProbeError` on failure."""
        url = self.url_for(target)
        try:
            resp = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ProbeError(str(exc) or type(exc).__name__, target=target, orig_exc=exc) from exc

        if resp.status_code != self._expected_status:
            raise ProbeError(
                f"bad status from {url}: {resp.status_code}, expected HTTP {self._expected_status}",
                target=target,
            )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
