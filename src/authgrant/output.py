"""Terminal output for the authgrant CLI.

stdout carries only the payload a command produces: credentials, a challenge
pair, authorization request parameters or provider profiles. Everything else
(status, errors, suggestions, debug lines) goes to stderr, so
``authgrant --plain callback URL | grep access_token`` sees nothing but data.

Payloads are rendered per :class:`OutputFormat`:

* ``json`` -- one JSON document.
* ``plain`` -- ``key=value`` lines (records) or tab-separated rows (tables).
* ``rich`` -- Rich tables. Token values are shortened on screen; pipe the
  output, or pass ``--json`` / ``--plain``, to get them in full.

``auto`` picks ``rich`` for an interactive, colour-capable stdout and
``plain`` otherwise. A single :class:`OutputManager` is installed by
:func:`~authgrant.app.main_callback`; commands call the module-level
functions, which delegate to it.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from authgrant.grant.challenge import ChallengeGenerator
from authgrant.models import Credentials, ProviderConfig

TOKEN_FIELDS = frozenset({"access_token", "id_token", "refresh_token"})
"""Credential fields shortened in rich output."""


class OutputFormat(str, Enum):
    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


def _flatten(record: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into dotted keys (``request.timeout``)."""
    flat: dict[str, Any] = {}
    for key, value in record.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, prefix=f"{name}."))
        else:
            flat[name] = value
    return flat


def _plain_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _shorten(token: str) -> str:
    if len(token) <= 16:
        return token
    return f"{token[:8]}…{token[-4:]} ({len(token)} chars)"


def _describe_lifetime(seconds: int) -> str:
    hours, rest = divmod(seconds, 3600)
    minutes = rest // 60
    if hours:
        return f"{seconds} ({hours}h {minutes}m)"
    return f"{seconds} ({minutes}m)"


class OutputManager:
    """Render command payloads on stdout and diagnostics on stderr.

    Args:
        format: Output format; ``AUTO`` is resolved at construction.
        no_color: Disable colour and Rich markup.
        quiet: Drop ``info``, ``success`` and ``suggest`` messages.
        verbose: Show ``debug`` messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            rich = _is_tty() and not self._no_color
            self._format = OutputFormat.RICH if rich else OutputFormat.PLAIN
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # ------------------------------------------------------------------ #
    # Payloads (stdout)
    # ------------------------------------------------------------------ #

    def credentials(self, credentials: Credentials) -> None:
        """Print credentials; ``None`` fields are left out."""
        record = credentials.model_dump(mode="json", exclude_none=True)
        if self._format != OutputFormat.RICH:
            self._record(record)
            return

        shown: dict[str, str] = {}
        for key, value in record.items():
            if key in TOKEN_FIELDS and isinstance(value, str):
                shown[key] = _shorten(value)
            elif key == "expires_in" and isinstance(value, int):
                shown[key] = _describe_lifetime(value)
            else:
                shown[key] = _plain_value(value)
        self._rich_record(shown, title="Credentials")
        if any(key in TOKEN_FIELDS for key in record):
            self.info("Token values are shortened; use --json or --plain to print them in full.")

    def challenge(self, generator: ChallengeGenerator) -> None:
        """Print a PKCE verifier with its challenge and method."""
        self._record(
            {
                "verifier": generator.verifier,
                "challenge": generator.challenge,
                "method": generator.method,
            },
            title="PKCE challenge",
        )

    def request_parameters(
        self,
        parameters: Mapping[str, str],
        generated_verifier: Optional[str] = None,
    ) -> None:
        """Print the extra parameters for the authorization request.

        A caller-supplied verifier is never printed. *generated_verifier* is
        for a verifier created on the user's behalf and is shown under
        ``verifier``, outside the request parameters.
        """
        if generated_verifier is None:
            self._record(dict(parameters), title="Authorization request parameters")
            return
        self._record(
            {"parameters": dict(parameters), "verifier": generated_verifier},
            title="Authorization request parameters",
        )

    def provider(self, provider: ProviderConfig) -> None:
        """Print one provider profile."""
        self._record(provider.model_dump(mode="json"), title=f"Provider {provider.name}")

    def providers(self, providers: Sequence[ProviderConfig], default: Optional[str]) -> None:
        """Print provider profiles as a table, marking the default with ``*``."""
        headers = ["name", "client_id", "token_url", "default"]
        rows = [
            [p.name, p.client_id, p.token_url, "*" if p.name == default else ""]
            for p in providers
        ]
        if self._format == OutputFormat.JSON:
            self._write(json.dumps([dict(zip(headers, row)) for row in rows], indent=2))
        elif self._format == OutputFormat.PLAIN:
            for row in [headers, *rows]:
                self._write("\t".join(row))
        else:
            table = Table(title="Providers", show_header=True, header_style="bold cyan")
            for header in headers:
                table.add_column(header)
            for row in rows:
                table.add_row(*(escape(cell) for cell in row))
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Informational message; suppressed by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(message, escape(message))

    def success(self, message: str) -> None:
        """Success message; suppressed by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(message, f"[green]{escape(message)}[/green]")

    def error(self, message: str) -> None:
        """Error message; always shown."""
        self._diagnostic(f"Error: {message}", f"[bold red]Error:[/bold red] {escape(message)}")

    def suggest(self, message: str) -> None:
        """Next-step hint; suppressed by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(f"→ {message}", f"[dim]→ {escape(message)}[/dim]")

    def debug(self, message: str) -> None:
        """Debug message; shown only with ``--verbose``."""
        if self._verbose:
            self._diagnostic(f"[debug] {message}", f"[dim]\\[debug] {escape(message)}[/dim]")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _write(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def _diagnostic(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup, soft_wrap=True)

    def _record(self, record: Mapping[str, Any], title: Optional[str] = None) -> None:
        if self._format == OutputFormat.JSON:
            self._write(json.dumps(record, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            for key, value in _flatten(record).items():
                self._write(f"{key}={_plain_value(value)}")
        else:
            shown = {key: _plain_value(value) for key, value in _flatten(record).items()}
            self._rich_record(shown, title=title)

    def _rich_record(self, record: Mapping[str, str], title: Optional[str]) -> None:
        table = Table(title=title, show_header=False, box=None, pad_edge=False)
        table.add_column(style="bold cyan", no_wrap=True)
        table.add_column(overflow="fold")
        for key, value in record.items():
            table.add_row(escape(key), escape(value))
        self._stdout.print(table)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating an ``AUTO`` one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the installed manager; used between tests."""
    global _output
    _output = None


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
