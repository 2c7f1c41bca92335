"""OpenID Connect discovery.

Fetches the provider metadata from
``{issuer}/.well-known/openid-configuration`` (OpenID Connect Discovery 1.0)
and returns it as a :class:`~lokilabels.models.DiscoveryDocument`. The
request is unauthenticated and goes through whichever client the caller
passes in, so it inherits that client's TLS policy and timeout.

Any failure -- network, status, body, missing ``token_endpoint`` -- raises
:class:`~lokilabels.exceptions.DiscoveryError`. There is no retry.
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from lokilabels.exceptions import DiscoveryError
from lokilabels.models import DiscoveryDocument
from lokilabels.output import debug, info

WELL_KNOWN_PATH = "/.well-known/openid-configuration"


def well_known_url(issuer: str) -> str:
    """Return the discovery document URL for *issuer*.

    Example::

        >>> well_known_url("https://sso.example.com/realms/ops/")
        'https://sso.example.com/realms/ops/.well-known/openid-configuration'
    """
    return issuer.rstrip("/") + WELL_KNOWN_PATH


def fetch_discovery_document(client: httpx.Client, issuer: str) -> DiscoveryDocument:
    """Fetch and validate the issuer's discovery document.

    Args:
        client: Base (unauthenticated) HTTP client to send the request with.
        issuer: Issuer base URL.

    Returns:
        The parsed :class:`~lokilabels.models.DiscoveryDocument`.

    Raises:
        DiscoveryError: If the document cannot be fetched, is not JSON, or
            lacks ``token_endpoint``.
    """
    url = well_known_url(issuer)
    debug(f"Fetching discovery document from {url}")

    try:
        response = client.get(url, headers={"Accept": "application/json"})
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as exc:
        raise DiscoveryError(
            f"OpenID discovery failed with status {exc.response.status_code}: "
            f"{exc.response.text[:200]}"
        ) from exc
    except httpx.HTTPError as exc:
        raise DiscoveryError(f"OpenID discovery failed: {exc}") from exc
    except ValueError as exc:
        raise DiscoveryError(
            f"OpenID discovery document at {url} is not valid JSON: {exc}"
        ) from exc

    if not isinstance(data, dict):
        raise DiscoveryError(f"OpenID discovery document at {url} is not a JSON object")

    if not data.get("token_endpoint"):
        raise DiscoveryError("OpenID discovery document missing 'token_endpoint'")

    try:
        document = DiscoveryDocument.model_validate(data)
    except ValidationError as exc:
        raise DiscoveryError(f"Invalid OpenID discovery document at {url}: {exc}") from exc

    info(f"Issuer: {document.issuer} TokenEndpoint: {document.token_endpoint}")
    return document
