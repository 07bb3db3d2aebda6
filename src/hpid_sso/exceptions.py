"""Exception hierarchy for hpid_sso.

All exceptions inherit from :class:`HPIDError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`hpid_sso.exit_codes`.

Only :class:`ConfigError` is meant to escape to the host application: it
signals a deployment misconfiguration and should abort start-up. Every
:class:`AuthFlowError` is caught at the transaction boundary by
:meth:`~hpid_sso.strategy.hpid.HPIDStrategy.handle_callback` and recorded
as a :class:`~hpid_sso.models.FailureEntry` instead.

Subclass hierarchy::

    HPIDError                 (exit 1)
    +-- ConfigError           (exit 1)
    +-- AuthFlowError         (exit 3)
        +-- OAuthTransportError   kind "OAuth2"        (exit 6)
        +-- ProviderError         kind <provider code>
        +-- TokenInvalid          kind "token"
        +-- MissingCredential     kind "missing_code"
"""

from __future__ import annotations

from typing import Optional

from hpid_sso.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
)
from hpid_sso.models import FailureEntry


class HPIDError(Exception):
    """Base exception for all hpid_sso errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(HPIDError):
    """Raised for configuration problems (missing credentials, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthFlowError(HPIDError):
    """A non-fatal failure of a single authentication transaction.

    Carries the ``kind`` / ``message`` pair that ends up in the
    :class:`~hpid_sso.models.AuthFailure` handed back to the host.
    """

    exit_code = EXIT_AUTH_FAILURE
    kind: str = "OAuth2"

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    def to_failure(self) -> FailureEntry:
        """Return this error as a :class:`~hpid_sso.models.FailureEntry`."""
        return FailureEntry(kind=self.kind, message=self.message)


class OAuthTransportError(AuthFlowError):
    """Raised when the identity provider cannot be reached (DNS, TLS, timeout, refused).

    Never retried; the transaction fails with kind ``"OAuth2"`` and the
    transport reason as message.
    """

    exit_code = EXIT_CONNECTION_ERROR
    kind = "OAuth2"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ProviderError(AuthFlowError):
    """Raised when the token endpoint answers with an OAuth error code instead of a token.

    ``kind`` is the provider's ``error`` value and ``message`` its
    ``error_description``, both verbatim.
    """

    def __init__(self, error: Optional[str], description: Optional[str]):
        super().__init__(description or "", kind=error or "")
        self.error = error
        self.description = description


class TokenInvalid(AuthFlowError):
    """Raised when a bearer token fails validation or the provider answers 401."""

    kind = "token"


class MissingCredential(AuthFlowError):
    """Raised when a callback carries neither ``code`` nor ``access_token``."""

    kind = "missing_code"

    def __init__(self, message: str = "No code received"):
        super().__init__(message)
