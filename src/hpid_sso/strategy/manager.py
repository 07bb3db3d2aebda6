"""Strategy manager -- registry and dispatcher for sign-in strategies.

The :class:`SSOManager` maps provider names (``"hpid"``) to
:class:`~hpid_sso.strategy.base.Strategy` instances and exposes the two
phases the host framework routes to: :meth:`~SSOManager.request_phase`
and :meth:`~SSOManager.callback_phase`.

For most use cases, call :func:`create_default_manager` to get a manager
with every built-in strategy registered.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

import httpx

from hpid_sso.exceptions import ConfigError
from hpid_sso.models import AuthFailure, AuthResult, ProviderConfig, Redirect
from hpid_sso.strategy.base import Strategy
from hpid_sso.strategy.transaction import CallbackURL

logger = logging.getLogger(__name__)


class SSOManager:
    """Registry and dispatcher for sign-in strategies.

    Example::

        manager = SSOManager()
        manager.register(HPIDStrategy(config))
        redirect = manager.request_phase("hpid", {"state": "xyz"}, callback_url)
    """

    def __init__(self) -> None:
        self._strategies: dict[str, Strategy] = {}

    def register(self, strategy: Strategy) -> None:
        """Register *strategy* under its :attr:`~Strategy.name`, replacing any previous one."""
        logger.debug("Registering sign-in strategy %r", strategy.name)
        self._strategies[strategy.name] = strategy

    def get_strategy(self, provider: str) -> Strategy:
        """Return the strategy registered for *provider*.

        Raises:
            ConfigError: If no strategy is registered under that name.
        """
        strategy = self._strategies.get(provider)
        if strategy is None:
            available = ", ".join(sorted(self._strategies)) or "(none)"
            raise ConfigError(
                f"No sign-in strategy registered for provider '{provider}'. "
                f"Available providers: {available}"
            )
        return strategy

    def request_phase(
        self,
        provider: str,
        params: Optional[Mapping[str, Any]] = None,
        callback_url: CallbackURL = None,
    ) -> Redirect:
        """Run the request phase for *provider*."""
        return self.get_strategy(provider).begin_auth(params, callback_url)

    def callback_phase(
        self,
        provider: str,
        params: Optional[Mapping[str, Any]] = None,
        callback_url: CallbackURL = None,
    ) -> Union[AuthResult, AuthFailure]:
        """Run the callback phase for *provider*."""
        return self.get_strategy(provider).handle_callback(params, callback_url)

    def list_providers(self) -> list[str]:
        return sorted(self._strategies)


def create_default_manager(
    config: Optional[ProviderConfig] = None,
    options: Optional[Mapping[str, Any]] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> SSOManager:
    """Create an :class:`SSOManager` with the built-in HP ID strategy.

    Args:
        config: Provider configuration. Resolved from files and environment
            via :func:`~hpid_sso.config.resolve_provider_config` when omitted.
        options: Registration options for the HP ID strategy.
        transport: httpx transport for provider calls (tests).
    """
    from hpid_sso.config import resolve_provider_config
    from hpid_sso.strategy.hpid import HPIDStrategy

    if config is None:
        config = resolve_provider_config()

    manager = SSOManager()
    manager.register(HPIDStrategy(config, options=options, transport=transport))
    return manager
