"""Strict TLS policy and the pooled transport that carries it.

Every request lokilabels issues -- discovery, token exchange and the Loki
call -- goes through one :class:`httpx.BaseTransport` built here, so the
same policy applies everywhere:

* minimum protocol version TLS 1.3;
* a single TLS 1.2 cipher suite, ``ECDHE-RSA-AES128-GCM-SHA256``
  (OpenSSL does not allow narrowing the TLS 1.3 suites through
  :meth:`ssl.SSLContext.set_ciphers`);
* certificate and hostname verification always on;
* an optional expected server name, sent as SNI and matched against the
  certificate instead of the URL host;
* a small keep-alive pool.
"""

from __future__ import annotations

import ssl
from typing import Optional

import httpx

from lokilabels.models import Settings

REQUEST_TIMEOUT = 3.0
"""Seconds allowed for each phase (connect, read, write, pool) of every request."""

MAX_CONNECTIONS = 10
MAX_KEEPALIVE_CONNECTIONS = 3

MINIMUM_TLS_VERSION = ssl.TLSVersion.TLSv1_3
CIPHER_SUITES = ("ECDHE-RSA-AES128-GCM-SHA256",)


def build_ssl_context(
    minimum_version: ssl.TLSVersion = MINIMUM_TLS_VERSION,
    ciphers: tuple[str, ...] = CIPHER_SUITES,
) -> ssl.SSLContext:
    """Create a verifying client :class:`ssl.SSLContext` with the strict policy.

    Args:
        minimum_version: Lowest protocol version the handshake may negotiate.
        ciphers: OpenSSL cipher names allowed for TLS 1.2 and below.

    Returns:
        A context with ``CERT_REQUIRED`` and hostname checking enabled,
        loaded with the system trust store.
    """
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    context.minimum_version = minimum_version
    context.set_ciphers(":".join(ciphers))
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    return context


class ServerNameTransport(httpx.BaseTransport):
    """Transport wrapper that pins the TLS server name of every request.

    Sets the ``sni_hostname`` request extension, which httpcore uses both
    as the SNI value and as the name the certificate must match. Requests
    that already carry an ``sni_hostname`` are left untouched.

    Args:
        transport: The wrapped transport that performs the I/O.
        server_name: Expected certificate name, or ``None`` to verify
            against the URL host.
    """

    def __init__(self, transport: httpx.BaseTransport, server_name: Optional[str] = None) -> None:
        self._transport = transport
        self._server_name = server_name

    @property
    def server_name(self) -> Optional[str]:
        return self._server_name

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        if self._server_name and request.url.scheme == "https":
            request.extensions.setdefault("sni_hostname", self._server_name)
        return self._transport.handle_request(request)

    def close(self) -> None:
        self._transport.close()


def build_transport(settings: Settings) -> ServerNameTransport:
    """Build the shared transport for *settings*.

    The returned object is handed to both the discovery client and the
    OAuth2 client, so they share one TLS policy and one connection pool.
    """
    pool = httpx.HTTPTransport(
        verify=build_ssl_context(),
        limits=httpx.Limits(
            max_connections=MAX_CONNECTIONS,
            max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
        ),
    )
    return ServerNameTransport(pool, server_name=settings.server)


def build_timeout() -> httpx.Timeout:
    return httpx.Timeout(REQUEST_TIMEOUT)
