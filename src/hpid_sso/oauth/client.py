"""Generic OAuth2 client for the authorization-code grant.

:class:`OAuthClient` is an immutable value describing one configured
client: credentials, endpoint URLs, an optional default ``redirect_uri``,
an optional access token, and extra params / headers sent with every
request. ``put_param`` and ``put_header`` return modified copies, so a
provider module can derive per-call clients from a shared base without
any mutable state.

Provider quirks (such as HP ID's ``client_secret`` query parameter on
authenticated calls) live in the provider module,
:mod:`hpid_sso.oauth.hpid`, not here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from hpid_sso.client import HTTPAdapter
from hpid_sso.exceptions import AuthFlowError
from hpid_sso.models import (
    ProviderResponse,
    RequestConfig,
    TokenResponse,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthClient:
    """An OAuth2 client bound to one provider site.

    Attributes:
        client_id: OAuth client identifier.
        client_secret: OAuth client secret.
        site: Base URL used to resolve relative request paths.
        authorize_url: Absolute authorization endpoint URL.
        token_url: Absolute token endpoint URL.
        redirect_uri: Default callback URL sent with authorize and token
            requests. ``None`` omits the parameter.
        token: Access token used by :meth:`get`.
        params: Extra parameters merged into every request.
        headers: Extra headers merged into every request.
        request: Timeout / TLS settings.
        transport: Optional httpx transport override.
    """

    client_id: str
    client_secret: str
    site: str
    authorize_url: str
    token_url: str
    redirect_uri: Optional[str] = None
    token: Optional[TokenResponse] = None
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    request: RequestConfig = field(default_factory=RequestConfig)
    transport: Optional[httpx.BaseTransport] = None

    def put_param(self, key: str, value: Any) -> OAuthClient:
        """Return a copy with ``key=value`` added to every request's parameters."""
        return replace(self, params={**self.params, key: value})

    def put_header(self, key: str, value: str) -> OAuthClient:
        """Return a copy with the header added to every request."""
        return replace(self, headers={**self.headers, key: value})

    def build_authorize_url(self, params: Optional[Mapping[str, Any]] = None) -> str:
        """Build the authorization endpoint URL for the code flow.

        ``response_type=code``, ``client_id`` and the default
        ``redirect_uri`` come first; client params and then *params*
        override them. Keys whose value is ``None`` are left out.
        """
        query: dict[str, Any] = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
        }
        query.update(self.params)
        query.update(params or {})
        query = {k: v for k, v in query.items() if v is not None}
        return f"{self.authorize_url}?{urlencode(query)}"

    def get_token(
        self,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> TokenResponse:
        """Exchange an authorization code for a token.

        POSTs a form-encoded ``grant_type=authorization_code`` request to
        :attr:`token_url`. The returned token may lack ``access_token``;
        in that case ``other_params`` holds the provider's ``error`` and
        ``error_description``.

        Raises:
            OAuthTransportError: If the token endpoint cannot be reached.
            AuthFlowError: If the token body has fields of the wrong type.
        """
        body: dict[str, Any] = {
            "grant_type": "authorization_code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
        }
        body.update(self.params)
        body.update(params or {})
        body = {k: v for k, v in body.items() if v is not None}

        with HTTPAdapter(self.request, self.transport) as http:
            response = http.post(
                self.token_url,
                data=body,
                headers={**self.headers, **(headers or {})},
            )
        return _parse_token_response(response)

    def get(
        self,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ProviderResponse:
        """Issue a GET authenticated with :attr:`token` as a bearer credential.

        Relative *path* values are resolved against :attr:`site`. The
        response is returned for every status; callers interpret it.

        Raises:
            OAuthTransportError: If the provider cannot be reached.
        """
        merged_headers = dict(self.headers)
        if self.token is not None and self.token.access_token:
            merged_headers["Authorization"] = f"Bearer {self.token.access_token}"
        merged_headers.update(headers or {})

        url = path if path.startswith(("http://", "https://")) else f"{self.site}{path}"
        with HTTPAdapter(self.request, self.transport) as http:
            return http.get(
                url,
                headers=merged_headers,
                params={**self.params, **(params or {})},
            )


def _parse_token_response(response: ProviderResponse) -> TokenResponse:
    if isinstance(response.body, Mapping):
        if not response.is_success:
            logger.debug("Token endpoint returned HTTP %s", response.status_code)
        try:
            return TokenResponse.from_payload(response.body)
        except ValidationError as exc:
            logger.warning(
                "Token endpoint body failed validation (%d errors)", exc.error_count()
            )
            raise AuthFlowError("Invalid token response") from exc
    return TokenResponse(
        other_params={
            "error": "invalid_response",
            "error_description": (
                f"Token endpoint returned HTTP {response.status_code} "
                "without a JSON object body"
            ),
        }
    )
