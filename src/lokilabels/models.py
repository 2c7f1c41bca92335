"""Pydantic models shared across lokilabels.

This is the single source of truth for data shapes in the project:

* :class:`Settings` -- the validated, immutable run configuration.
* :class:`DiscoveryDocument` -- the subset of OpenID Provider Metadata
  that is read from ``/.well-known/openid-configuration``.
* :class:`LabelResponse` -- the body of Loki's label-listing endpoint.

Response models ignore unknown keys so that providers adding metadata
fields never break decoding.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Settings ---


class Settings(BaseModel):
    """Run configuration, loaded from the environment by :mod:`lokilabels.config`.

    Example::

        Settings(
            issuer="https://sso.example.com/realms/ops",
            client_id="loki-reader",
            client_secret="s3cret",
            loki="https://loki.example.com",
            server="loki.example.com",
        )
    """

    model_config = ConfigDict(frozen=True)

    issuer: str = Field(description="OIDC issuer base URL used for discovery")
    client_id: str = Field(min_length=1, description="OAuth2 client identifier")
    client_secret: str = Field(min_length=1, description="OAuth2 client secret")
    loki: str = Field(description="Base URL of the Loki service")
    server: Optional[str] = Field(
        default=None,
        description="Expected TLS server name; the URL host is used when unset",
    )

    @field_validator("issuer", "loki")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"must be an http(s) URL, got {value!r}")
        return value.rstrip("/")

    @field_validator("server")
    @classmethod
    def _blank_server_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    def __repr__(self) -> str:
        return (
            f"Settings(issuer={self.issuer!r}, client_id={self.client_id!r}, "
            f"client_secret='***', loki={self.loki!r}, server={self.server!r})"
        )

    __str__ = __repr__


# --- OpenID Connect discovery ---


class DiscoveryDocument(BaseModel):
    """OpenID Provider Metadata (OpenID Connect Discovery 1.0), trimmed.

    Only ``token_endpoint`` is required; the other fields are informational.
    """

    model_config = ConfigDict(extra="ignore")

    issuer: str = ""
    authorization_endpoint: str = ""
    token_endpoint: str = Field(min_length=1)
    jwks_uri: str = ""


# --- Loki ---


class LabelResponse(BaseModel):
    """Body of ``GET /loki/api/v1/labels``.

    Loki returns ``{"status": "success", "data": ["job", "level", ...]}``.
    The ``data`` key is exposed as :attr:`labels`.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    status: str = ""
    labels: list[str] = Field(default_factory=list, alias="data")

    @field_validator("labels", mode="before")
    @classmethod
    def _null_is_empty(cls, value: object) -> object:
        return [] if value is None else value

    def joined(self, separator: str = ", ") -> str:
        """Return the label names joined by *separator*."""
        return separator.join(self.labels)
