"""Terminal output for the ``hpid-sso`` CLI.

Data the operator asked for (an authorization URL, an auth result, the
resolved configuration) goes to **stdout**; everything else (status,
warnings, sign-in failures, hints) goes to **stderr**, so the CLI can be
piped into ``jq`` or a shell variable.

Three renderings are supported:

* ``json`` -- machine readable, one JSON document per command.
* ``plain`` -- tab-separated ``key<TAB>value`` lines; nested values are
  flattened to dotted keys (``info.email``).
* ``rich`` -- tables and highlighted JSON on a colour terminal.

``auto`` picks ``rich`` on an interactive terminal and ``plain``
otherwise. An auth result is JSON unless ``--plain`` is given.
``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` switch colour off
everywhere.

:func:`~hpid_sso.app.main_callback` installs one :class:`OutputManager`
with :func:`set_output`; commands use the module-level helpers.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Iterator, Optional, Union

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from hpid_sso.models import AuthFailure, AuthResult


class OutputFormat(str, Enum):
    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Renders command results and diagnostics.

    Args:
        format: Requested rendering; ``AUTO`` is resolved at construction.
        no_color: Disable colour and markup on both streams.
        quiet: Drop informational and hint messages.
        verbose: Show debug messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self.no_color = no_color or _color_disabled_by_env()
        self.quiet = quiet
        self.verbose = verbose
        self.requested_format = format
        if format == OutputFormat.AUTO:
            interactive = sys.stdout.isatty() if hasattr(sys.stdout, "isatty") else False
            format = OutputFormat.RICH if interactive and not self.no_color else OutputFormat.PLAIN
        self.format = format
        self._out = Console(file=sys.stdout, no_color=self.no_color, highlight=False)
        self._err = Console(file=sys.stderr, no_color=self.no_color, highlight=False)

    # --- stdout ---

    def location(self, url: str) -> None:
        """Print a URL the operator will paste into a browser."""
        if self.format == OutputFormat.JSON:
            self._write(json.dumps({"location": url}))
        else:
            self._write(url)

    def auth_result(self, result: AuthResult) -> None:
        """Print a successful sign-in.

        JSON unless ``--plain`` was given explicitly, in which case the
        result is flattened to dotted ``key<TAB>value`` lines.
        """
        data = result.model_dump(mode="json")
        if self.requested_format == OutputFormat.PLAIN:
            for key, value in _flatten(data):
                self._write(f"{key}\t{value}")
            return
        text = json.dumps(data, indent=2, ensure_ascii=False)
        if self.format == OutputFormat.RICH:
            self._out.print(Syntax(text, "json", word_wrap=True))
        else:
            self._write(text)

    def settings(self, rows: list[tuple[str, str]], title: str) -> None:
        """Print configuration ``(key, value)`` pairs."""
        if self.format == OutputFormat.JSON:
            self._write(json.dumps(dict(rows), indent=2, ensure_ascii=False))
        elif self.format == OutputFormat.PLAIN:
            for key, value in rows:
                self._write(f"{key}\t{value}")
        else:
            table = Table(title=title, header_style="bold cyan")
            table.add_column("key")
            table.add_column("value")
            for key, value in rows:
                table.add_row(key, value)
            self._out.print(table)

    # --- stderr ---

    def failures(self, failure: AuthFailure) -> None:
        """Report each ``kind: message`` entry of a failed sign-in."""
        for entry in failure.errors:
            self.error(f"{entry.kind}: {entry.message}")

    def info(self, message: str) -> None:
        if not self.quiet:
            self._diagnostic(message, "")

    def success(self, message: str) -> None:
        if not self.quiet:
            self._diagnostic(message, "", style="green")

    def error(self, message: str) -> None:
        self._diagnostic(message, "Error: ", style="bold red")

    def hint(self, message: str) -> None:
        if not self.quiet:
            self._diagnostic(message, "-> ", style="dim")

    def debug(self, message: str) -> None:
        if self.verbose:
            self._diagnostic(message, "[debug] ", style="dim")

    def _write(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def _diagnostic(self, message: str, prefix: str, style: Optional[str] = None) -> None:
        if self.no_color or style is None:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
        else:
            self._err.print(f"{prefix}{message}", style=style, markup=False)


def _color_disabled_by_env() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _flatten(data: Any, prefix: str = "") -> Iterator[tuple[str, str]]:
    """Yield ``(dotted.key, value)`` pairs; lists are joined with commas."""
    if isinstance(data, dict):
        for key, value in data.items():
            yield from _flatten(value, f"{prefix}{key}.")
    elif isinstance(data, list) and all(not isinstance(v, (dict, list)) for v in data):
        yield prefix[:-1], ",".join("" if v is None else str(v) for v in data)
    elif isinstance(data, list):
        yield prefix[:-1], json.dumps(data, ensure_ascii=False)
    else:
        yield prefix[:-1], "" if data is None else str(data)


# --- process-wide instance ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def location(url: str) -> None:
    get_output().location(url)


def auth_result(result: AuthResult) -> None:
    get_output().auth_result(result)


def settings(rows: list[tuple[str, str]], title: str) -> None:
    get_output().settings(rows, title)


def failures(failure: AuthFailure) -> None:
    get_output().failures(failure)


def report(outcome: Union[AuthResult, AuthFailure]) -> None:
    """Print *outcome* on the stream that matches it."""
    if isinstance(outcome, AuthFailure):
        failures(outcome)
    else:
        auth_result(outcome)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)


def hint(message: str) -> None:
    get_output().hint(message)


def debug(message: str) -> None:
    get_output().debug(message)
