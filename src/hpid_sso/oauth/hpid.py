"""OAuth2 for HP ID.

:class:`HPIDOAuth` wraps :class:`~hpid_sso.oauth.client.OAuthClient`
with the HP ID specifics:

- the directory host (staging or production) is picked once from
  :attr:`ProviderConfig.use_staging`, and the authorize, token and validate
  URLs are always derived from it;
- the token request and every authenticated GET carry ``client_secret`` as
  a request parameter, which the HP ID directory API requires;
- :meth:`HPIDOAuth.validate` checks a bearer token against the validate
  endpoint, including the audience (``client_id``) match.

Configuration::

    export HPID_CLIENT_ID=...
    export HPID_CLIENT_SECRET=...

Usage outside the normal callback phase::

    oauth = HPIDOAuth(resolve_provider_config())
    client = oauth.build_client(redirect_uri="http://localhost:4000/auth/hpid/callback")
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from hpid_sso.exceptions import ConfigError, OAuthTransportError
from hpid_sso.models import ProviderConfig, ProviderResponse, TokenResponse
from hpid_sso.oauth.client import OAuthClient

logger = logging.getLogger(__name__)

_REQUIRED_KEYS = ("client_id", "client_secret")


class HPIDOAuth:
    """HP ID OAuth2 operations bound to one immutable :class:`ProviderConfig`.

    Args:
        config: The process-wide provider configuration.
        transport: Optional httpx transport, used by tests to stand in for
            the directory service.
    """

    def __init__(
        self,
        config: ProviderConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport

    def defaults(self) -> dict[str, Any]:
        """Compiled defaults: the selected host and the URLs derived from it."""
        return {
            "site": self.config.site_host,
            "authorize_url": self.config.authorize_url,
            "token_url": self.config.token_url,
            "request": self.config.request,
            "transport": self._transport,
        }

    def build_client(self, **overrides: Any) -> OAuthClient:
        """Construct a client for requests to HP ID.

        Options merge in priority order (lowest to highest): compiled
        defaults, process configuration (``client_id``, ``client_secret``,
        ``redirect_uri``), then *overrides*. An override whose value is
        ``None`` clears the option, e.g. ``redirect_uri=None``.

        Raises:
            ConfigError: If ``client_id`` or ``client_secret`` is missing
                from the provider configuration.
        """
        for key in _REQUIRED_KEYS:
            if not getattr(self.config, key):
                raise ConfigError(f"'{key}' missing from HP ID provider configuration")

        options = self.defaults()
        options.update(
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            redirect_uri=self.config.redirect_uri,
        )
        options.update(overrides)
        return OAuthClient(**options)

    def authorize_url(
        self,
        params: Optional[Mapping[str, Any]] = None,
        **client_overrides: Any,
    ) -> str:
        """Return the authorization URL for the request phase."""
        return self.build_client(**client_overrides).build_authorize_url(params)

    def exchange_code(
        self,
        code: str,
        redirect_uri: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        client_options: Optional[Mapping[str, Any]] = None,
    ) -> TokenResponse:
        """Exchange an authorization code for a token.

        Sends ``grant_type=authorization_code``, ``code``, ``client_id``,
        ``client_secret`` and, when applicable, ``redirect_uri``, with
        ``Accept: application/json``.

        Args:
            code: The authorization code received on the callback.
            redirect_uri: Callback URL the code was issued for. Takes
                precedence over the client's configured ``redirect_uri``.
            headers: Extra headers for the token request.
            client_options: Overrides forwarded to :meth:`build_client`.

        Returns:
            The parsed token. ``access_token`` is ``None`` when the provider
            reported an error.

        Raises:
            OAuthTransportError: If the token endpoint cannot be reached.
            AuthFlowError: If the token body has fields of the wrong type.
        """
        client = self.build_client(**dict(client_options or {}))
        client = client.put_param("client_secret", client.client_secret)
        client = client.put_header("Accept", "application/json")

        params: dict[str, Any] = {"code": code}
        if redirect_uri is not None:
            params["redirect_uri"] = redirect_uri

        logger.debug("Exchanging authorization code at %s", client.token_url)
        return client.get_token(params, headers)

    def authenticated_get(
        self,
        token: TokenResponse,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ProviderResponse:
        """GET *path* with *token* as bearer auth plus ``client_secret`` as a parameter.

        Raises:
            OAuthTransportError: If the provider cannot be reached.
        """
        client = self.build_client(token=token)
        client = client.put_param("client_secret", client.client_secret)
        return client.get(path, headers, params)

    def validate(self, token: TokenResponse) -> bool:
        """Verify a bearer token with HP ID.

        Returns ``True`` only when the validate endpoint answers with a
        status from 200 through 399, the body's ``active`` is ``true``, and the
        body's ``client_id`` equals ours. The audience match stops a token
        issued to another client from being replayed here. Transport
        errors and every mismatch return ``False``.
        """
        if not token.access_token:
            return False

        try:
            response = self.authenticated_get(token, ProviderConfig.INTROSPECT_PATH)
        except OAuthTransportError as exc:
            logger.warning("Token validation request failed: %s", exc.reason)
            return False

        if not response.is_success:
            logger.warning("Token validation rejected with HTTP %s", response.status_code)
            return False

        body = response.body
        if not isinstance(body, Mapping):
            logger.warning("Token validation returned a non-object body")
            return False

        if body.get("active") is not True:
            logger.warning("Token validation: token is not active")
            return False
        if body.get("client_id") != self.config.client_id:
            logger.warning("Token validation: token was issued to a different client")
            return False
        return True
