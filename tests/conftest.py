"""Shared test fixtures for hpid_sso.

Provides an isolated configuration environment, a ready-made
:class:`~hpid_sso.models.ProviderConfig`, and :class:`FakeDirectory`, an
in-process stand-in for the HP ID directory built on
:class:`httpx.MockTransport`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from hpid_sso.config import ENV_VARS
from hpid_sso.models import ProviderConfig
from hpid_sso.output import reset_output


CLIENT_ID = "test-client"
CLIENT_SECRET = "test-secret"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test."""
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME into tmp_path, clears all HPID_* environment
    variables, and changes the working directory to tmp_path.
    """
    monkeypatch.setattr("hpid_sso.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(client_id=CLIENT_ID, client_secret=CLIENT_SECRET)


# ---------------------------------------------------------------------------
# Fake HP ID directory
# ---------------------------------------------------------------------------


class FakeDirectory:
    """Programmable HP ID directory served through :class:`httpx.MockTransport`.

    Routes are keyed by URL path. Every request is recorded in
    :attr:`requests` so tests can assert on what was sent.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def route(self, path: str, handler: Handler) -> None:
        self.routes[path] = handler

    @staticmethod
    def json(data: Any, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code=status_code, json=data)

    @staticmethod
    def form_body(request: httpx.Request) -> dict[str, str]:
        """Decode a form-encoded request body into a flat dict."""
        parsed = parse_qs(request.content.decode("utf-8"), keep_blank_values=True)
        return {k: v[0] for k, v in parsed.items()}

    def respond(self, path: str, data: Any, status_code: int = 200) -> None:
        self.route(path, lambda request: self.json(data, status_code))

    def fail(self, path: str, message: str = "connection refused") -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(message, request=request)

        self.route(path, _raise)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def last(self, path: str) -> Optional[httpx.Request]:
        matching = self.requests_to(path)
        return matching[-1] if matching else None

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, text="no route")
        return handler(request)


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()
