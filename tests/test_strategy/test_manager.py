"""Tests for strategy registration and dispatch."""

from __future__ import annotations

import json

import pytest

from hpid_sso.exceptions import ConfigError
from hpid_sso.models import AuthFailure, AuthResult, ProviderConfig, Redirect
from hpid_sso.strategy.hpid import HPIDStrategy
from hpid_sso.strategy.manager import SSOManager, create_default_manager


class TestSSOManager:
    def test_register_and_get(self, provider_config) -> None:
        manager = SSOManager()
        strategy = HPIDStrategy(provider_config)
        manager.register(strategy)
        assert manager.get_strategy("hpid") is strategy
        assert manager.list_providers() == ["hpid"]

    def test_register_replaces(self, provider_config) -> None:
        manager = SSOManager()
        manager.register(HPIDStrategy(provider_config))
        replacement = HPIDStrategy(provider_config, options={"uid_field": "email"})
        manager.register(replacement)
        assert manager.get_strategy("hpid") is replacement

    def test_unknown_provider(self) -> None:
        with pytest.raises(ConfigError, match="No sign-in strategy registered for provider 'github'"):
            SSOManager().get_strategy("github")

    def test_unknown_provider_lists_available(self, provider_config) -> None:
        manager = SSOManager()
        manager.register(HPIDStrategy(provider_config))
        with pytest.raises(ConfigError, match="Available providers: hpid"):
            manager.get_strategy("github")


class TestDispatch:
    def test_request_phase(self, provider_config, directory) -> None:
        manager = create_default_manager(provider_config, transport=directory.transport)
        redirect = manager.request_phase("hpid", {"state": "s1"}, "https://app/cb")
        assert isinstance(redirect, Redirect)
        assert "state=s1" in redirect.location

    def test_callback_phase(self, provider_config, directory) -> None:
        directory.respond(ProviderConfig.TOKEN_PATH, {"access_token": "at"})
        directory.respond(ProviderConfig.USERINFO_PATH, {"id": "u1", "email": "u1@example.com"})
        manager = create_default_manager(provider_config, transport=directory.transport)

        outcome = manager.callback_phase("hpid", {"code": "abc"}, "https://app/cb")

        assert isinstance(outcome, AuthResult)
        assert outcome.uid == "u1"

    def test_callback_failure(self, provider_config, directory) -> None:
        manager = create_default_manager(provider_config, transport=directory.transport)
        outcome = manager.callback_phase("hpid", {}, "https://app/cb")
        assert isinstance(outcome, AuthFailure)
        assert outcome.provider == "hpid"


class TestCreateDefaultManager:
    def test_registration_options(self, provider_config) -> None:
        manager = create_default_manager(provider_config, options={"uid_field": "email"})
        assert manager.get_strategy("hpid").option("uid_field") == "email"

    def test_resolves_config_when_omitted(self, isolated_config, monkeypatch) -> None:
        monkeypatch.setenv("HPID_CLIENT_ID", "env-client")
        monkeypatch.setenv("HPID_CLIENT_SECRET", "env-secret")
        (isolated_config / "hpid.json").write_text(json.dumps({"use_stage": True}))

        strategy = create_default_manager().get_strategy("hpid")

        assert strategy.config.client_id == "env-client"
        assert strategy.config.use_staging is True
