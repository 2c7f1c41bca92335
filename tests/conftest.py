"""Shared test fixtures for lokilabels.

Provides a validated :class:`Settings`, an in-memory fake of the identity
provider and Loki served through :class:`httpx.MockTransport`, output state
management and a CLI runner. These fixtures are automatically discovered by
pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
import os
from typing import Any, Optional

import httpx
import pytest

from lokilabels.models import Settings
from lokilabels.output import OutputFormat, OutputManager, reset_output, set_output


ISSUER = "https://sso.example.com/realms/ops"
TOKEN_ENDPOINT = "https://sso.example.com/realms/ops/protocol/openid-connect/token"
LOKI = "https://loki.example.com"
SERVER = "loki.example.com"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; resetting forces a fresh manager on next use.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        issuer=ISSUER,
        client_id="loki-reader",
        client_secret="s3cret",
        loki=LOKI,
        server=SERVER,
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every recognised setting from the environment, in any case."""
    for name in list(os.environ):
        if name.upper() in {"ISSUER", "CLIENT_ID", "CLIENT_SECRET", "LOKI", "SERVER"}:
            monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ---------------------------------------------------------------------------
# Fake identity provider + Loki
# ---------------------------------------------------------------------------


def discovery_document(**overrides: Any) -> dict[str, Any]:
    """Build a Keycloak-like discovery document."""
    doc: dict[str, Any] = {
        "issuer": ISSUER,
        "authorization_endpoint": f"{ISSUER}/protocol/openid-connect/auth",
        "token_endpoint": TOKEN_ENDPOINT,
        "jwks_uri": f"{ISSUER}/protocol/openid-connect/certs",
        "grant_types_supported": ["client_credentials", "authorization_code"],
    }
    doc.update(overrides)
    return doc


def token_response(
    access_token: str = "test-access-token",
    expires_in: int = 300,
    token_type: str = "Bearer",
) -> dict[str, Any]:
    """Build a client-credentials token endpoint JSON response."""
    return {
        "access_token": access_token,
        "expires_in": expires_in,
        "token_type": token_type,
        "scope": "openid profile email",
    }


class FakeProvider:
    """Routes requests to canned discovery, token and Loki responses.

    Each response can be replaced per test by assigning an
    :class:`httpx.Response` (or a dict, served as JSON with status 200) to
    :attr:`discovery`, :attr:`token` or :attr:`labels`. Every request is
    recorded in :attr:`requests`.
    """

    def __init__(self) -> None:
        self.discovery: Any = discovery_document()
        self.token: Any = token_response()
        self.labels: Any = {"status": "success", "data": ["app", "job", "level"]}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url == f"{ISSUER}/.well-known/openid-configuration":
            return self._respond(self.discovery)
        if request.method == "POST" and url == TOKEN_ENDPOINT:
            return self._respond(self.token)
        if url == f"{LOKI}/loki/api/v1/labels":
            return self._respond(self.labels)
        return httpx.Response(404, text=f"no route for {request.method} {url}")

    @staticmethod
    def _respond(value: Any) -> httpx.Response:
        if isinstance(value, httpx.Response):
            return value
        return httpx.Response(
            200,
            headers={"content-type": "application/json"},
            content=json.dumps(value).encode(),
        )

    # -- inspection helpers --

    def requests_to(self, url: str, method: Optional[str] = None) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if str(r.url) == url and (method is None or r.method == method)
        ]

    @property
    def discovery_requests(self) -> list[httpx.Request]:
        return self.requests_to(f"{ISSUER}/.well-known/openid-configuration")

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def label_requests(self) -> list[httpx.Request]:
        return self.requests_to(f"{LOKI}/loki/api/v1/labels")


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def transport(provider: FakeProvider) -> httpx.MockTransport:
    return httpx.MockTransport(provider)


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
