"""hpid_sso -- HP ID single sign-on strategy for pluggable authentication hosts.

The host framework routes two phases per provider to this package:

- the **request phase** builds the redirect to the HP ID authorization page;
- the **callback phase** exchanges the returned code (or validates a
  bearer token), fetches the user's profile, and returns a normalised
  :class:`~hpid_sso.models.AuthResult` or an
  :class:`~hpid_sso.models.AuthFailure`.

Typical usage::

    from hpid_sso import create_default_manager

    manager = create_default_manager()
    redirect = manager.request_phase("hpid", params, callback_url)
    outcome = manager.callback_phase("hpid", params, callback_url)

Modules:
    app: Typer operator CLI.
    models: Pydantic models shared across the package.
    config: Configuration loading and precedence.
    exceptions: Exception hierarchy with exit-code mapping.
    normalizer: Projections of provider data into auth records.
    output: stdout/stderr formatting for the CLI.
"""

__version__ = "1.0.0"

from hpid_sso.strategy import HPIDStrategy, SSOManager, create_default_manager  # noqa: E402

__all__ = ["HPIDStrategy", "SSOManager", "__version__", "create_default_manager"]
