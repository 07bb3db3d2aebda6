"""Sign-in strategies and their dispatcher.

- :class:`Strategy` -- abstract base for provider strategies.
- :class:`HPIDStrategy` -- HP ID authorization-code / bearer-token strategy.
- :class:`SSOManager` / :func:`create_default_manager` -- registry keyed by
  provider name.
- :class:`Transaction` / :class:`TransactionState` -- per-request context.
"""

from hpid_sso.strategy.base import Strategy
from hpid_sso.strategy.hpid import HPIDStrategy
from hpid_sso.strategy.manager import SSOManager, create_default_manager
from hpid_sso.strategy.transaction import Transaction, TransactionState

__all__ = [
    "HPIDStrategy",
    "SSOManager",
    "Strategy",
    "Transaction",
    "TransactionState",
    "create_default_manager",
]
