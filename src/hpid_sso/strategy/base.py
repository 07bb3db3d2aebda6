"""Abstract base class for sign-in strategies.

A strategy drives one identity provider through the two phases the host
framework dispatches:

- :meth:`Strategy.begin_auth` -- the request phase, answering with a
  :class:`~hpid_sso.models.Redirect` to the provider.
- :meth:`Strategy.handle_callback` -- the callback phase, answering with
  an :class:`~hpid_sso.models.AuthResult` or an
  :class:`~hpid_sso.models.AuthFailure`.

Both are template methods. To implement a provider, subclass
:class:`Strategy`, set :attr:`~Strategy.name`, and implement
:meth:`~Strategy.handle_request`, :meth:`~Strategy.run_callback` and the
four projections (:meth:`~Strategy.uid`, :meth:`~Strategy.credentials`,
:meth:`~Strategy.info`, :meth:`~Strategy.extra`). Override
:meth:`~Strategy.handle_cleanup` to drop anything else the transaction
holds.

See Also:
    :mod:`hpid_sso.strategy.manager` for registration and dispatch.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Union

from hpid_sso.exceptions import AuthFlowError
from hpid_sso.models import (
    AuthFailure,
    AuthResult,
    Credentials,
    Identity,
    RawExtra,
    Redirect,
)
from hpid_sso.strategy.transaction import CallbackURL, Transaction, TransactionState

logger = logging.getLogger(__name__)


class Strategy(ABC):
    """Abstract base class for provider strategies.

    Args:
        options: Per-registration options overriding the strategy's
            defaults (see :meth:`option`).
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        self.options = dict(options or {})

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name the strategy is registered under (e.g. ``"hpid"``)."""
        ...

    def default_options(self) -> dict[str, Any]:
        """Option defaults used when a key is absent from :attr:`options`."""
        return {}

    def option(self, key: str) -> Any:
        """Return the registration option *key*, falling back to :meth:`default_options`."""
        if key in self.options:
            return self.options[key]
        return self.default_options().get(key)

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    def begin_auth(
        self,
        params: Optional[Mapping[str, Any]] = None,
        callback_url: CallbackURL = None,
    ) -> Redirect:
        """Run the request phase.

        Args:
            params: Query/body parameters of the inbound request.
            callback_url: The host's callback URL for this provider, or a
                function computing it.

        Returns:
            The redirect to send the user agent to.
        """
        txn = Transaction(provider=self.name, params=dict(params or {}), callback_url=callback_url)
        return self.handle_request(txn)

    def handle_callback(
        self,
        params: Optional[Mapping[str, Any]] = None,
        callback_url: CallbackURL = None,
    ) -> Union[AuthResult, AuthFailure]:
        """Run the callback phase and return its outcome.

        :class:`~hpid_sso.exceptions.AuthFlowError` raised by any step is
        recorded as a failure; :class:`~hpid_sso.exceptions.ConfigError`
        propagates. The transaction is always cleaned up before returning.
        """
        txn = Transaction(
            provider=self.name,
            params=dict(params or {}),
            callback_url=callback_url,
            state=TransactionState.REQUEST_SENT,
        )
        try:
            try:
                self.run_callback(txn)
            except AuthFlowError as exc:
                txn.fail(exc)
            return self._resolve(txn)
        finally:
            self.handle_cleanup(txn)

    # ------------------------------------------------------------------ #
    # Provider hooks
    # ------------------------------------------------------------------ #

    @abstractmethod
    def handle_request(self, txn: Transaction) -> Redirect:
        """Build the redirect to the provider for the request phase."""
        ...

    @abstractmethod
    def run_callback(self, txn: Transaction) -> None:
        """Advance *txn* through the callback phase.

        Implementations store the token and profile on *txn* and raise
        :class:`~hpid_sso.exceptions.AuthFlowError` on failure.
        """
        ...

    def handle_cleanup(self, txn: Transaction) -> None:
        """Discard transaction-scoped credentials."""
        txn.clear()

    @abstractmethod
    def uid(self, txn: Transaction) -> Any:
        ...

    @abstractmethod
    def credentials(self, txn: Transaction) -> Credentials:
        ...

    @abstractmethod
    def info(self, txn: Transaction) -> Identity:
        ...

    @abstractmethod
    def extra(self, txn: Transaction) -> RawExtra:
        ...

    def _resolve(self, txn: Transaction) -> Union[AuthResult, AuthFailure]:
        if txn.errors:
            if not txn.resolved:
                txn.transition(TransactionState.FAILURE)
            kinds = ", ".join(e.kind for e in txn.errors)
            logger.warning("%s sign-in failed: %s", self.name, kinds)
            return AuthFailure(provider=self.name, errors=list(txn.errors))

        txn.transition(TransactionState.SUCCESS)
        logger.info("%s sign-in succeeded", self.name)
        return AuthResult(
            provider=self.name,
            uid=self.uid(txn),
            info=self.info(txn),
            credentials=self.credentials(txn),
            extra=self.extra(txn),
        )
