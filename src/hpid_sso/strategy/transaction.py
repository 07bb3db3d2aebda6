"""Transaction context threaded through a strategy's request and callback phases.

A :class:`Transaction` is created per inbound request and passed
explicitly to every step of the state machine; nothing about a sign-in
attempt lives in module or strategy state. States advance::

    IDLE -> REQUEST_SENT -> CODE_RECEIVED | TOKEN_RECEIVED | CREDENTIAL_MISSING
         -> SUCCESS | FAILURE

``SUCCESS`` and ``FAILURE`` are terminal.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from hpid_sso.exceptions import AuthFlowError
from hpid_sso.models import FailureEntry, TokenResponse, UserProfile

logger = logging.getLogger(__name__)

CallbackURL = Union[str, Callable[[], str], None]
"""The host's callback URL for the current request, or a function computing it."""


class TransactionState(str, enum.Enum):
    """Lifecycle states of one authentication transaction."""

    IDLE = "idle"
    REQUEST_SENT = "request_sent"
    CODE_RECEIVED = "code_received"
    TOKEN_RECEIVED = "token_received"
    CREDENTIAL_MISSING = "credential_missing"
    SUCCESS = "success"
    FAILURE = "failure"


TERMINAL_STATES = frozenset({TransactionState.SUCCESS, TransactionState.FAILURE})


@dataclass
class Transaction:
    """Mutable, request-scoped state of one sign-in attempt.

    Attributes:
        provider: Name the strategy is registered under.
        params: Query/body parameters of the inbound request.
        callback_url: Host-computed callback URL (or a function returning it).
        state: Current :class:`TransactionState`.
        token: Token obtained during the callback phase.
        user: Userinfo profile fetched with :attr:`token`.
        errors: Failures recorded so far.
    """

    provider: str
    params: dict[str, Any] = field(default_factory=dict)
    callback_url: CallbackURL = None
    state: TransactionState = TransactionState.IDLE
    token: Optional[TokenResponse] = None
    user: Optional[UserProfile] = None
    errors: list[FailureEntry] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, state: TransactionState) -> None:
        """Move to *state*. Terminal states can not be left."""
        if self.resolved:
            raise RuntimeError(
                f"Transaction already resolved as {self.state.value}; "
                f"cannot move to {state.value}"
            )
        logger.debug("%s transaction: %s -> %s", self.provider, self.state.value, state.value)
        self.state = state

    def fail(self, error: AuthFlowError) -> None:
        """Record *error* and resolve the transaction as a failure."""
        self.errors.append(error.to_failure())
        self.transition(TransactionState.FAILURE)

    def resolve_callback_url(self) -> Optional[str]:
        if callable(self.callback_url):
            return self.callback_url()
        return self.callback_url

    def clear(self) -> None:
        """Drop the token and userinfo profile held by this transaction."""
        self.token = None
        self.user = None
