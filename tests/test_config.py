"""Tests for hpid_sso.config -- XDG paths, config files, env, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from hpid_sso.config import (
    get_config_dir,
    load_env_config,
    load_project_config,
    load_user_config,
    resolve_credential,
    resolve_provider_config,
)
from hpid_sso.exceptions import ConfigError


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


class TestConfigDir:
    def test_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("hpid_sso.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert get_config_dir() == tmp_path / "xdg" / "hpid-sso"

    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("hpid_sso.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".config" / "hpid-sso"

    def test_non_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("hpid_sso.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".hpid-sso"


class TestFileLoading:
    def test_missing_default_user_config_is_empty(self, isolated_config: Path) -> None:
        assert load_user_config() == {}

    def test_explicit_missing_file_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_user_config(isolated_config / "nope.json")

    def test_invalid_json_raises(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "hpid-sso" / "config.json"
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_user_config()

    def test_non_object_raises(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "hpid.json", ["a"])
        with pytest.raises(ConfigError, match="JSON object"):
            load_project_config()


class TestEnvConfig:
    def test_reads_known_vars(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HPID_CLIENT_ID", "env-id")
        monkeypatch.setenv("HPID_USE_STAGING", "yes")
        monkeypatch.setenv("HPID_SEND_REDIRECT_URI", "false")
        assert load_env_config() == {
            "client_id": "env-id",
            "use_staging": True,
            "send_redirect_uri": False,
        }

    def test_bad_boolean(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HPID_USE_STAGING", "maybe")
        with pytest.raises(ConfigError, match="HPID_USE_STAGING"):
            load_env_config()


class TestResolveProviderConfig:
    def test_defaults_without_credentials(self, isolated_config: Path) -> None:
        config = resolve_provider_config()
        assert config.client_id is None
        assert config.client_secret is None
        assert config.use_staging is False

    def test_precedence(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(
            isolated_config / "config" / "hpid-sso" / "config.json",
            {"client_id": "user-id", "client_secret": "user-secret", "uid_field": "sub"},
        )
        _write_json(
            isolated_config / "hpid.json",
            {"client_id": "project-id", "default_scope": "openid"},
        )
        monkeypatch.setenv("HPID_CLIENT_ID", "env-id")

        config = resolve_provider_config(overrides={"default_scope": "openid+email"})

        assert config.client_id == "env-id"
        assert config.client_secret == "user-secret"
        assert config.uid_field == "sub"
        assert config.default_scope == "openid+email"

    def test_none_overrides_ignored(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HPID_USE_STAGING", "true")
        config = resolve_provider_config(overrides={"use_staging": None})
        assert config.use_staging is True

    def test_explicit_config_path(self, isolated_config: Path) -> None:
        path = isolated_config / "custom.json"
        _write_json(path, {"client_id": "custom", "use_stage": True})
        config = resolve_provider_config(config_path=path)
        assert config.client_id == "custom"
        assert config.use_staging is True

    def test_use_stage_override_beats_file(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "hpid.json", {"use_staging": False})
        config = resolve_provider_config(overrides={"use_stage": True})
        assert config.use_staging is True

    def test_credential_sources(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        secret_file = isolated_config / "secret.txt"
        secret_file.write_text("file-secret\n", encoding="utf-8")
        monkeypatch.setenv("MY_CLIENT_ID", "sourced-id")
        _write_json(
            isolated_config / "hpid.json",
            {
                "client_id_source": "env:MY_CLIENT_ID",
                "client_secret_source": f"file:{secret_file}",
            },
        )
        config = resolve_provider_config()
        assert config.client_id == "sourced-id"
        assert config.client_secret == "file-secret"

    def test_literal_value_wins_over_source(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HPID_CLIENT_SECRET", "literal")
        _write_json(isolated_config / "hpid.json", {"client_secret_source": "env:UNSET_VAR"})
        config = resolve_provider_config()
        assert config.client_secret == "literal"

    def test_validation_error_becomes_config_error(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "hpid.json", {"request": {"timeout": "soon"}})
        with pytest.raises(ConfigError, match="Invalid HP ID provider configuration"):
            resolve_provider_config()


class TestResolveCredential:
    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOME_SECRET", "value")
        assert resolve_credential("env:SOME_SECRET") == "value"

    def test_env_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SOME_SECRET", raising=False)
        with pytest.raises(ConfigError, match="SOME_SECRET"):
            resolve_credential("env:SOME_SECRET")

    def test_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'missing'}")

    def test_unknown_format(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("vault:path")
