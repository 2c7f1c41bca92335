"""Exception hierarchy for lokilabels.

All exceptions inherit from :class:`LokiLabelsError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`lokilabels.exit_codes`.
The CLI command in :mod:`lokilabels.app` catches ``LokiLabelsError``, prints
the message to stderr and exits with the appropriate code.

Subclass hierarchy::

    LokiLabelsError (exit 1)
    +-- ConfigError         (exit 2)
    +-- AuthError           (exit 3)
    +-- DiscoveryError      (exit 4)
    +-- ServerError         (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- ResponseDecodeError (exit 7)
"""

from lokilabels.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_DISCOVERY_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_SERVER_ERROR,
)


class LokiLabelsError(Exception):
    """Base exception for all lokilabels errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`lokilabels.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(LokiLabelsError):
    """Raised when required settings are missing or fail validation."""

    exit_code = EXIT_CONFIG_ERROR


class AuthError(LokiLabelsError):
    """Raised when the client-credentials exchange fails or a token is rejected."""

    exit_code = EXIT_AUTH_FAILURE


class DiscoveryError(LokiLabelsError):
    """Raised when the issuer's well-known configuration cannot be used."""

    exit_code = EXIT_DISCOVERY_FAILURE


class ServerError(LokiLabelsError):
    """Raised when the downstream service returns a non-2xx status."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(LokiLabelsError):
    """Raised on network-level failures (timeout, DNS resolution, TLS handshake).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ResponseDecodeError(LokiLabelsError):
    """Raised when a response body is not JSON or does not match the expected shape."""

    exit_code = EXIT_DECODE_ERROR
