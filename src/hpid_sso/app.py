"""Typer application and CLI entry point for hpid-sso.

The CLI is an operator tool for checking an HP ID deployment from a
shell: it resolves the same :class:`~hpid_sso.models.ProviderConfig` a
host application would, and drives the strategy's phases directly.

Commands::

    hpid-sso authorize-url --callback-url https://example.com/auth/hpid/callback
    hpid-sso callback --code <code> --callback-url https://example.com/auth/hpid/callback
    hpid-sso validate <access-token>
    hpid-sso config show

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from hpid_sso import __version__
from hpid_sso.exceptions import HPIDError
from hpid_sso.exit_codes import EXIT_AUTH_FAILURE


app = typer.Typer(
    name="hpid-sso",
    help="Drive and inspect HP ID single sign-on from the command line.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

config_app = typer.Typer(no_args_is_help=True)
app.add_typer(config_app, name="config", help="Inspect the resolved provider configuration.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"hpid-sso {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, no_color: bool) -> None:
    """Route package logging to stderr through Rich."""
    logger = logging.getLogger("hpid_sso")
    for existing in list(logger.handlers):
        if isinstance(existing, RichHandler):
            logger.removeHandler(existing)

    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_path=False,
        show_time=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


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
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Provider config JSON file."
    ),
    staging: Optional[bool] = typer.Option(
        None, "--staging/--production", help="Select the HP ID directory host."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~hpid_sso.output.OutputManager`, configures
    logging, and stores the config options in ``ctx.obj``. An existing
    ``ctx.obj`` dict is kept, so callers may pre-seed a ``transport``.
    """
    from hpid_sso.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose, no_color)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_file
    ctx.obj["staging"] = staging


def _build_strategy(ctx: typer.Context):
    from hpid_sso.config import resolve_provider_config
    from hpid_sso.strategy.hpid import HPIDStrategy

    config = resolve_provider_config(
        ctx.obj.get("config_path"),
        {"use_staging": ctx.obj.get("staging")},
    )
    return HPIDStrategy(config, transport=ctx.obj.get("transport"))


def _exit_with(exc: HPIDError) -> typer.Exit:
    from hpid_sso.output import error

    error(str(exc))
    return typer.Exit(code=exc.exit_code)


@app.command("authorize-url")
def authorize_url(
    ctx: typer.Context,
    scope: Optional[str] = typer.Option(None, "--scope", help="Scope to request."),
    state: Optional[str] = typer.Option(None, "--state", help="Opaque state passed through HP ID."),
    callback_url: Optional[str] = typer.Option(
        None, "--callback-url", help="Callback URL of the host application."
    ),
) -> None:
    """Print the HP ID authorization URL for the request phase."""
    from hpid_sso.output import debug, location

    params: dict[str, Any] = {}
    if scope is not None:
        params["scope"] = scope
    if state is not None:
        params["state"] = state

    try:
        redirect = _build_strategy(ctx).begin_auth(params, callback_url)
    except HPIDError as exc:
        raise _exit_with(exc) from None

    debug(f"HTTP {redirect.status_code} redirect")
    location(redirect.location)


@app.command("callback")
def callback(
    ctx: typer.Context,
    code: Optional[str] = typer.Option(None, "--code", help="Authorization code from HP ID."),
    access_token: Optional[str] = typer.Option(
        None, "--access-token", help="Bearer token (token flow)."
    ),
    callback_url: Optional[str] = typer.Option(
        None, "--callback-url", help="Callback URL the code was issued for."
    ),
) -> None:
    """Run the callback phase and print the auth result, or its failures on stderr.

    Exits with code 3 when the transaction resolves to a failure.
    """
    from hpid_sso.models import AuthFailure
    from hpid_sso.output import report

    params: dict[str, Any] = {}
    if code is not None:
        params["code"] = code
    if access_token is not None:
        params["access_token"] = access_token

    try:
        outcome = _build_strategy(ctx).handle_callback(params, callback_url)
    except HPIDError as exc:
        raise _exit_with(exc) from None

    report(outcome)
    if isinstance(outcome, AuthFailure):
        raise typer.Exit(code=EXIT_AUTH_FAILURE)


@app.command("validate")
def validate(
    ctx: typer.Context,
    token: str = typer.Argument(help="Access token to verify."),
) -> None:
    """Verify a bearer token is active and was issued to this client."""
    from hpid_sso.models import TokenResponse
    from hpid_sso.output import error, success

    try:
        valid = _build_strategy(ctx).check_access_token(TokenResponse.from_bearer(token))
    except HPIDError as exc:
        raise _exit_with(exc) from None

    if not valid:
        error("Token verification failed")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
    success("Token is valid for this client.")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Print the resolved provider configuration with secrets masked."""
    from hpid_sso.config import get_config_dir, resolve_provider_config
    from hpid_sso.output import hint, info, settings

    try:
        config = resolve_provider_config(
            ctx.obj.get("config_path"),
            {"use_staging": ctx.obj.get("staging")},
        )
    except HPIDError as exc:
        raise _exit_with(exc) from None

    info(f"Config directory: {get_config_dir()}")
    settings(
        [
            ("client_id", config.client_id or "(not set)"),
            ("client_secret", _mask(config.client_secret)),
            ("site_host", config.site_host),
            ("redirect_uri", config.redirect_uri or "(callback URL)"),
            ("default_scope", config.default_scope),
            ("uid_field", config.uid_field),
            ("send_redirect_uri", str(config.send_redirect_uri).lower()),
        ],
        title="HP ID provider",
    )

    if not config.client_id or not config.client_secret:
        hint("Set HPID_CLIENT_ID and HPID_CLIENT_SECRET before signing users in.")


def _mask(secret: Optional[str]) -> str:
    if not secret:
        return "(not set)"
    return "********"


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """Console-script entry point."""
    _setup_signal_handlers()
    try:
        app()
    except HPIDError as exc:
        from hpid_sso.output import error

        error(str(exc))
        sys.exit(exc.exit_code)
