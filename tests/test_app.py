"""End-to-end tests for the lokilabels CLI command."""

from __future__ import annotations

import json

import httpx
import pytest

from conftest import ISSUER, LOKI, SERVER
from lokilabels import __version__
from lokilabels.app import app
from lokilabels.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_DISCOVERY_FAILURE,
    EXIT_SERVER_ERROR,
    EXIT_SUCCESS,
)


@pytest.fixture
def env(clean_env: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    clean_env.setenv("ISSUER", ISSUER)
    clean_env.setenv("CLIENT_ID", "loki-reader")
    clean_env.setenv("CLIENT_SECRET", "s3cret")
    clean_env.setenv("LOKI", LOKI)
    clean_env.setenv("SERVER", SERVER)
    clean_env.setenv("NO_COLOR", "1")
    return clean_env


@pytest.fixture
def built_transports(env, transport) -> list:
    """Route the command's transport to the fake provider and record the settings it was built for."""
    seen: list = []

    def fake_build_transport(settings):
        seen.append(settings)
        return transport

    env.setattr("lokilabels.app.build_transport", fake_build_transport)
    return seen


class TestSuccess:
    def test_prints_comma_joined_labels(self, cli_runner, built_transports, provider) -> None:
        provider.labels = {"status": "success", "data": ["a", "b", "c"]}

        result = cli_runner.invoke(app, ["--plain"])

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "a, b, c" in result.output

    def test_logs_progress_to_stderr(self, cli_runner, built_transports, provider) -> None:
        result = cli_runner.invoke(app, [])

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert f"Issuer: {ISSUER}" in result.output
        assert f"Getting labels from Loki at {LOKI}" in result.output

    def test_quiet_prints_only_labels(self, cli_runner, built_transports, provider) -> None:
        provider.labels = {"status": "success", "data": ["job", "level"]}

        result = cli_runner.invoke(app, ["--quiet"])

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert result.output.strip() == "job, level"

    def test_json_output(self, cli_runner, built_transports, provider) -> None:
        provider.labels = {"status": "success", "data": ["a", "b"]}

        result = cli_runner.invoke(app, ["--json", "--quiet"])

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert json.loads(result.output) == {"status": "success", "data": ["a", "b"]}

    def test_cli_flags_override_environment(self, cli_runner, built_transports) -> None:
        result = cli_runner.invoke(app, ["--quiet", "--server", "loki.internal"])

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert built_transports[0].server == "loki.internal"

    def test_bearer_token_reaches_loki(self, cli_runner, built_transports, provider) -> None:
        result = cli_runner.invoke(app, ["--quiet"])

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert provider.label_requests[0].headers["Authorization"] == "Bearer test-access-token"

    def test_null_data_prints_no_labels(self, cli_runner, built_transports, provider) -> None:
        provider.labels = {"status": "success", "data": None}

        result = cli_runner.invoke(app, ["--plain"])

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "Loki returned no labels" in result.output

    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestFailures:
    def test_missing_configuration(self, cli_runner, clean_env) -> None:
        clean_env.setenv("NO_COLOR", "1")

        result = cli_runner.invoke(app, [])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Missing required setting(s)" in result.output

    def test_discovery_failure_stops_before_token_exchange(
        self, cli_runner, built_transports, provider
    ) -> None:
        provider.discovery = httpx.Response(500, text="down")

        result = cli_runner.invoke(app, [])

        assert result.exit_code == EXIT_DISCOVERY_FAILURE
        assert "Error: OpenID discovery failed" in result.output
        assert provider.token_requests == []
        assert provider.label_requests == []

    def test_token_exchange_failure(self, cli_runner, built_transports, provider) -> None:
        provider.token = httpx.Response(401, json={"error": "invalid_client"})

        result = cli_runner.invoke(app, [])

        assert result.exit_code == EXIT_AUTH_FAILURE
        assert "invalid_client" in result.output
        assert provider.label_requests == []

    def test_loki_server_error(self, cli_runner, built_transports, provider) -> None:
        provider.labels = httpx.Response(502, text="bad gateway")

        result = cli_runner.invoke(app, [])

        assert result.exit_code == EXIT_SERVER_ERROR
        assert "HTTP 502" in result.output

    def test_loki_unreachable(self, env, cli_runner, provider) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "loki.example.com":
                raise httpx.ConnectError("connection refused", request=request)
            return provider(request)

        env.setattr("lokilabels.app.build_transport", lambda settings: httpx.MockTransport(handler))

        result = cli_runner.invoke(app, [])

        assert result.exit_code == EXIT_CONNECTION_ERROR
        assert "connection refused" in result.output

    def test_loki_body_not_json(self, cli_runner, built_transports, provider) -> None:
        provider.labels = httpx.Response(200, text="plain text")

        result = cli_runner.invoke(app, [])

        assert result.exit_code == EXIT_DECODE_ERROR
        assert "not valid JSON" in result.output
