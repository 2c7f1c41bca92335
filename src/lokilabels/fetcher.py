"""Authenticated JSON fetcher built on httpx and Authlib.

This module provides :class:`AuthenticatedFetcher`, which owns the HTTP
client used for every request of a run, and :func:`create_fetcher`, which
runs the bootstrap sequence:

1. Build a base :class:`httpx.Client` around the strict TLS transport from
   :mod:`lokilabels.tls` (3 second timeout, small keep-alive pool).
2. Resolve the token endpoint through OpenID Connect discovery using that
   base client. A :class:`~lokilabels.exceptions.DiscoveryError` stops the
   bootstrap before any token exchange.
3. Exchange the client credentials for an access token with Authlib's
   :class:`~authlib.integrations.httpx_client.OAuth2Client`, requesting the
   ``openid profile email`` scopes.
4. The OAuth2 client is constructed over the same transport object, so the
   token request honours the TLS policy too.
5. The fetcher switches to the OAuth2 client. From then on Authlib attaches
   ``Authorization: Bearer <token>`` to each request and fetches a new
   token when the current one expires.

The transport is always passed explicitly; nothing is injected through
module globals or context.

See Also:
    :mod:`lokilabels.discovery` for the discovery request.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional, TypeVar

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import OAuth2Client
from pydantic import BaseModel, ValidationError

from lokilabels.discovery import fetch_discovery_document
from lokilabels.exceptions import (
    AuthError,
    ConnectionError_,
    ResponseDecodeError,
    ServerError,
)
from lokilabels.models import Settings
from lokilabels.output import debug
from lokilabels.tls import build_timeout, build_transport

SCOPES = ("openid", "profile", "email")
GRANT_TYPE = "client_credentials"

ModelT = TypeVar("ModelT", bound=BaseModel)


class AuthenticatedFetcher:
    """HTTP client holder that swaps to an OAuth2-authenticated client once.

    Use :func:`create_fetcher` to get a ready-to-use instance. The fetcher
    is a context manager; leaving the block closes the active client and
    with it the shared transport.

    Args:
        settings: Validated run configuration.
        transport: Transport for every request. Defaults to
            :func:`lokilabels.tls.build_transport`; tests pass an
            :class:`httpx.MockTransport`.
        timeout: Per-request timeout. Defaults to
            :func:`lokilabels.tls.build_timeout`.

    Example::

        with create_fetcher(settings) as fetcher:
            labels = fetcher.get_json(url, LabelResponse)
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: Optional[httpx.Timeout] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport if transport is not None else build_transport(settings)
        self._timeout = timeout if timeout is not None else build_timeout()
        self._client: httpx.Client = httpx.Client(
            transport=self._transport,
            timeout=self._timeout,
        )
        self._token_endpoint: Optional[str] = None
        self._authenticated = False

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> AuthenticatedFetcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------ #
    # Bootstrap
    # ------------------------------------------------------------------ #

    @property
    def client(self) -> httpx.Client:
        """The active client: the base client before :meth:`authenticate`, the OAuth2 client after."""
        return self._client

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    def get_token_endpoint(self) -> str:
        """Return the token endpoint, running discovery on the first call only.

        Raises:
            DiscoveryError: If the discovery document cannot be used.
        """
        if self._token_endpoint is not None:
            return self._token_endpoint

        document = fetch_discovery_document(self._client, self._settings.issuer)
        self._token_endpoint = document.token_endpoint
        return self._token_endpoint

    def authenticate(self) -> None:
        """Run the client-credentials exchange and switch to the authenticated client.

        Raises:
            DiscoveryError: If the token endpoint cannot be discovered.
            AuthError: If the token request fails or the response carries
                no usable bearer token.
        """
        if self._authenticated:
            return

        token_endpoint = self.get_token_endpoint()
        oauth_client = OAuth2Client(
            client_id=self._settings.client_id,
            client_secret=self._settings.client_secret,
            scope=" ".join(SCOPES),
            token_endpoint=token_endpoint,
            grant_type=GRANT_TYPE,
            transport=self._transport,
            timeout=self._timeout,
        )

        debug(f"Requesting {GRANT_TYPE} token from {token_endpoint}")
        with _token_request_errors():
            token = oauth_client.fetch_token(token_endpoint, grant_type=GRANT_TYPE)

        _check_token(token)
        debug(f"Obtained access token (expires_in={token.get('expires_in', 'unknown')})")

        self._client = oauth_client
        self._authenticated = True

    def _renew_token(self) -> None:
        """Re-run the grant if the current token has expired.

        A failed token request raises :class:`AuthError`, not an error of
        the downstream call.
        """
        oauth_client = self._client
        with _token_request_errors():
            oauth_client.ensure_active_token(oauth_client.token)
        _check_token(oauth_client.token)

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def get_json(self, url: str, model: type[ModelT]) -> ModelT:
        """GET *url* with the active client and decode the body into *model*.

        Args:
            url: Absolute URL to fetch.
            model: Pydantic model describing the expected JSON shape.

        Returns:
            The validated *model* instance.

        Raises:
            AuthError: On 401 / 403 or when Authlib cannot renew the token.
            ServerError: On any other non-2xx status.
            ConnectionError_: On network, timeout or TLS errors.
            ResponseDecodeError: If the body is not JSON or does not fit *model*.
        """
        if self._authenticated:
            self._renew_token()

        try:
            response = self._client.get(url, headers={"Accept": "application/json"})
        except AuthlibBaseError as exc:
            raise AuthError(f"Could not renew access token: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"Request to {url} failed: {exc}") from exc

        debug(f"GET {url} -> HTTP {response.status_code}")
        _map_response_error(response)

        try:
            data: Any = response.json()
            return model.model_validate(data)
        except ValidationError as exc:
            raise ResponseDecodeError(
                f"Unexpected response shape from {url}: {exc.error_count()} validation error(s)"
            ) from exc
        except ValueError as exc:
            raise ResponseDecodeError(f"Response from {url} is not valid JSON: {exc}") from exc


def create_fetcher(
    settings: Settings,
    transport: Optional[httpx.BaseTransport] = None,
) -> AuthenticatedFetcher:
    """Build an :class:`AuthenticatedFetcher` and run the full bootstrap.

    The fetcher is closed again if the bootstrap fails.

    Raises:
        DiscoveryError: If discovery fails (no token exchange is attempted).
        AuthError: If the token exchange fails.
    """
    fetcher = AuthenticatedFetcher(settings, transport=transport)
    try:
        fetcher.authenticate()
    except BaseException:
        fetcher.close()
        raise
    return fetcher


@contextmanager
def _token_request_errors() -> Iterator[None]:
    """Map failures of a token request to :class:`AuthError`."""
    try:
        yield
    except httpx.HTTPStatusError as exc:
        raise AuthError(
            f"Token request failed with status {exc.response.status_code}: "
            f"{exc.response.text[:200]}"
        ) from exc
    except httpx.HTTPError as exc:
        raise AuthError(f"Token request failed: {exc}") from exc
    except AuthlibBaseError as exc:
        raise AuthError(f"Token request rejected: {exc}") from exc
    except ValueError as exc:
        raise AuthError(f"Token response is not valid JSON: {exc}") from exc


def _check_token(token: Any) -> None:
    """Reject token responses that Authlib accepted but cannot be used as bearer tokens."""
    if not token or not token.get("access_token"):
        raise AuthError("Token response missing 'access_token' field")
    token_type = token.get("token_type")
    if not token_type:
        raise AuthError("Token response missing 'token_type' field")
    if str(token_type).lower() != "bearer":
        raise AuthError(f"Unsupported token type {token_type!r}; expected 'Bearer'")


def _map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for non-2xx HTTP status codes."""
    if response.is_success:
        return

    status = response.status_code
    detail = response.text[:200] if response.text else ""
    prefix = f"HTTP {status} from {response.request.url}"
    message = f"{prefix}: {detail}" if detail else prefix

    if status in (401, 403):
        raise AuthError(message)
    raise ServerError(message)
