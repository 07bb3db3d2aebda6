"""Configuration loading with XDG paths and precedence resolution.

This module produces the single, immutable
:class:`~hpid_sso.models.ProviderConfig` a process uses for every
authentication transaction:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.hpid-sso/`` on macOS and Windows. See :func:`get_config_dir`.
* **Config files** -- a user-wide ``config.json`` in the config directory
  and an optional project-local ``./hpid.json``.
* **Environment** -- ``HPID_*`` variables (see :data:`ENV_VARS`).
* **Precedence resolution** -- :func:`resolve_provider_config` merges
  overrides, environment, project config and user config, in that order.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars or files for ``client_id_source`` / ``client_secret_source``.

Missing ``client_id`` / ``client_secret`` is not reported here; it is
rejected when an OAuth client is built.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from hpid_sso.exceptions import ConfigError
from hpid_sso.models import ProviderConfig

_APP_NAME = "hpid-sso"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "hpid.json"

ENV_VARS: dict[str, str] = {
    "HPID_CLIENT_ID": "client_id",
    "HPID_CLIENT_SECRET": "client_secret",
    "HPID_USE_STAGING": "use_staging",
    "HPID_REDIRECT_URI": "redirect_uri",
    "HPID_DEFAULT_SCOPE": "default_scope",
    "HPID_UID_FIELD": "uid_field",
    "HPID_SEND_REDIRECT_URI": "send_redirect_uri",
}
"""Environment variable name -> :class:`ProviderConfig` field."""

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}
_BOOL_FIELDS = {"use_staging", "send_redirect_uri"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory (not created).

    On Linux/BSD: ``$XDG_CONFIG_HOME/hpid-sso/`` (default ``~/.config/hpid-sso/``).
    On macOS/Windows: ``~/.hpid-sso/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


# --- File loading ---


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a JSON object")
    return data


def load_user_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the user-wide config file.

    Args:
        path: Explicit file to read. When given, the file must exist.
            Defaults to ``<config_dir>/config.json``, which may be absent.

    Returns:
        The raw config mapping (empty when the default file is absent).

    Raises:
        ConfigError: If the file is missing (explicit path only) or holds
            invalid JSON.
    """
    if path is not None:
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        return _read_json(path)
    default = get_config_dir() / _CONFIG_FILENAME
    if not default.is_file():
        return {}
    return _read_json(default)


def load_project_config() -> dict[str, Any]:
    """Load project-local configuration from ``./hpid.json`` (empty if absent)."""
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return {}
    return _read_json(path)


def load_env_config() -> dict[str, Any]:
    """Collect ``HPID_*`` environment variables into a config mapping."""
    values: dict[str, Any] = {}
    for var, field_name in ENV_VARS.items():
        raw = os.environ.get(var)
        if raw is None:
            continue
        if field_name in _BOOL_FIELDS:
            values[field_name] = _parse_bool(var, raw)
        else:
            values[field_name] = raw
    return values


def _parse_bool(var: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"Environment variable '{var}' is not a boolean: {raw!r}")


# --- Precedence resolution ---


def resolve_provider_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> ProviderConfig:
    """Resolve the provider configuration with full precedence chain.

    Precedence (high to low):
        1. ``overrides`` (CLI flags, call-site values; ``None`` values ignored)
        2. Environment variables (``HPID_CLIENT_ID``, ...)
        3. Project config (``./hpid.json``)
        4. User config (``config_path`` or ``~/.config/hpid-sso/config.json``)
        5. Defaults

    Credential sources are resolved afterwards for any of ``client_id`` /
    ``client_secret`` still unset.

    Returns:
        The validated, frozen :class:`~hpid_sso.models.ProviderConfig`.

    Raises:
        ConfigError: On invalid JSON, failed validation, or an unresolvable
            credential source.
    """
    merged: dict[str, Any] = {}
    merged.update(_normalize_keys(load_user_config(config_path)))
    merged.update(_normalize_keys(load_project_config()))
    merged.update(load_env_config())
    merged.update(
        _normalize_keys({k: v for k, v in (overrides or {}).items() if v is not None})
    )

    for key in ("client_id", "client_secret"):
        source = merged.get(f"{key}_source")
        if not merged.get(key) and source:
            merged[key] = resolve_credential(source)

    try:
        return ProviderConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid HP ID provider configuration: {exc}") from exc


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    # File configs may use the older ``use_stage`` spelling.
    if "use_stage" in data and "use_staging" not in data:
        data = {**data, "use_staging": data["use_stage"]}
    return {k: v for k, v in data.items() if k != "use_stage"}


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")
