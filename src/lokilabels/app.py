"""Typer application and CLI entry point for lokilabels.

The single command loads settings, bootstraps the authenticated fetcher,
lists Loki's labels and prints them. Every
:class:`~lokilabels.exceptions.LokiLabelsError` is reported on stderr and
turned into the matching exit code; nothing is retried.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler and converts unexpected
exceptions into a generic failure exit.

See Also:
    :mod:`lokilabels.fetcher`: the discovery and token-exchange bootstrap.
    :mod:`lokilabels.output`: output formatting initialised by the command.
"""

from __future__ import annotations

import signal
import sys
import traceback
from typing import Any, Optional

import typer

from lokilabels import __version__
from lokilabels.config import resolve_settings
from lokilabels.exceptions import LokiLabelsError
from lokilabels.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from lokilabels.fetcher import create_fetcher
from lokilabels.loki import fetch_labels
from lokilabels.models import LabelResponse
from lokilabels.output import OutputFormat, OutputManager, set_output
from lokilabels.tls import build_transport


app = typer.Typer(
    name="lokilabels",
    help="List Loki labels using an OIDC client-credentials token.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"lokilabels {__version__}")
        raise typer.Exit()


@app.command()
def labels(
    issuer: Optional[str] = typer.Option(
        None, "--issuer", help="OIDC issuer base URL. Overrides $ISSUER."
    ),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="OAuth2 client identifier. Overrides $CLIENT_ID."
    ),
    loki: Optional[str] = typer.Option(
        None, "--loki", help="Loki base URL. Overrides $LOKI."
    ),
    server: Optional[str] = typer.Option(
        None, "--server", help="Expected TLS server name. Overrides $SERVER."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the label response as JSON."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Authenticate against the issuer and print the labels Loki knows about.

    The client secret is read from $CLIENT_SECRET only.
    """
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)

    try:
        settings = resolve_settings(
            issuer=issuer,
            client_id=client_id,
            loki=loki,
            server=server,
        )
        output.debug(f"Using {settings}")
        with create_fetcher(settings, transport=build_transport(settings)) as fetcher:
            response = fetch_labels(fetcher, settings.loki)
    except LokiLabelsError as exc:
        output.error(str(exc))
        raise typer.Exit(exc.exit_code)

    _print_labels(output, response)


def _print_labels(output: OutputManager, response: LabelResponse) -> None:
    """Write *response* to stdout in the active format."""
    if response.status and response.status != "success":
        output.warning(f"Loki reported status {response.status!r}")

    if not response.labels and output.format != OutputFormat.JSON:
        output.warning("Loki returned no labels")
    output.format_response(response.model_dump(by_alias=True), response.joined())
    output.success(f"{len(response.labels)} label(s)")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``lokilabels`` console script.

    Known failures exit inside the command with their own codes. Anything
    else is reported with its traceback under ``--verbose`` and exits with
    :data:`~lokilabels.exit_codes.EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from lokilabels.output import debug, error

        debug(traceback.format_exc())
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
