"""Typer application factory and CLI entry point for authgrant.

This module wires together the top-level Typer application and registers the
built-in commands (``challenge``, ``defaults``, ``callback`` and the
``provider`` group).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~authgrant.exceptions.AuthgrantError` exits with the error's code;
any other exception is written to a crash log under the data directory.

See Also:
    :mod:`authgrant.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from authgrant import __version__
from authgrant.commands.grant import callback_command, challenge_command, defaults_command
from authgrant.commands.provider import provider_app
from authgrant.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="authgrant",
    help="Validate OAuth2 authorization responses and exchange PKCE codes.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("challenge")(challenge_command)
app.command("defaults")(defaults_command)
app.command("callback")(callback_command)
app.add_typer(provider_app, name="provider", help="Identity provider profiles.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"authgrant {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route the ``authgrant`` logger to stderr; DEBUG when *verbose*."""
    logger = logging.getLogger("authgrant")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False, markup=False)
        )


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~authgrant.output.OutputManager` from the
    CLI flags, falling back to the stored ``output.format`` preference, and
    configures library logging.
    """
    from authgrant.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        from authgrant.config import load_global_config

        fmt = OutputFormat(load_global_config().output.format)

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from authgrant.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``authgrant`` console script.

    Unhandled :class:`~authgrant.exceptions.AuthgrantError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

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
        sys.exit(130)
    except Exception as exc:
        from authgrant.exceptions import AuthgrantError
        from authgrant.output import error

        if isinstance(exc, AuthgrantError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
