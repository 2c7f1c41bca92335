"""lokilabels -- list Loki labels with an OpenID Connect client-credentials token.

The tool discovers the issuer's token endpoint from its
``/.well-known/openid-configuration`` document, exchanges a client id and
secret for a bearer token, and calls Loki's label-listing API with it. All
requests share one strict TLS transport.

Typical usage::

    export ISSUER=https://sso.example.com/realms/ops
    export CLIENT_ID=loki-reader CLIENT_SECRET=...
    export LOKI=https://loki.example.com SERVER=loki.example.com
    lokilabels

Modules:
    app: Typer application and CLI entry point.
    config: Environment loading and precedence resolution.
    discovery: OpenID Connect discovery request.
    fetcher: Bootstrap sequence and authenticated JSON fetches.
    loki: The label-listing endpoint.
    models: Pydantic models shared across the package.
    tls: SSL context and shared transport.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
