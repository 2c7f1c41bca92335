"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure stage and is referenced by the
corresponding :class:`~lokilabels.exceptions.LokiLabelsError` subclass.
Shell wrappers and cron jobs can inspect the exit code to tell a bad
client secret apart from an unreachable Loki without parsing stderr.

Example::

    $ lokilabels
    $ echo $?
    4   # EXIT_DISCOVERY_FAILURE -- the issuer metadata could not be read
"""

EXIT_SUCCESS = 0
"""The labels were fetched and printed."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIG_ERROR = 2
"""Required settings are missing or invalid."""

EXIT_AUTH_FAILURE = 3
"""The token exchange failed or the bearer token was rejected."""

EXIT_DISCOVERY_FAILURE = 4
"""The OpenID Connect discovery document could not be fetched or parsed."""

EXIT_SERVER_ERROR = 5
"""Loki answered with a non-2xx status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, TLS handshake)."""

EXIT_DECODE_ERROR = 7
"""The Loki response body was not the expected JSON shape."""

EXIT_INTERRUPTED = 130
"""The run was cancelled with Ctrl-C."""
