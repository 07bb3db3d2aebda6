"""Sign-in strategy for HP ID.

Setup::

    export HPID_CLIENT_ID=...
    export HPID_CLIENT_SECRET=...
    export HPID_USE_STAGING=true                                    # optional
    export HPID_REDIRECT_URI=https://example.com/auth/hpid/callback # optional

then register the strategy with the host's dispatcher::

    manager = create_default_manager()
    redirect = manager.request_phase("hpid", request.args, callback_url)
    outcome = manager.callback_phase("hpid", request.args, callback_url)

To customise the requested scope per sign-in, pass it as a request
parameter (``/auth/hpid?scope=openid+profile+email``). A ``state`` request
parameter is passed through to HP ID and comes back on the callback.

Registration options (``default_scope``, ``uid_field``,
``send_redirect_uri``) override the values from
:class:`~hpid_sso.models.ProviderConfig`.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx
from pydantic import ValidationError

from hpid_sso import normalizer
from hpid_sso.exceptions import (
    AuthFlowError,
    MissingCredential,
    ProviderError,
    TokenInvalid,
)
from hpid_sso.models import (
    AuthorizationRequest,
    Credentials,
    Identity,
    ProviderConfig,
    RawExtra,
    Redirect,
    TokenResponse,
)
from hpid_sso.oauth.hpid import HPIDOAuth
from hpid_sso.strategy.base import Strategy
from hpid_sso.strategy.transaction import Transaction, TransactionState

logger = logging.getLogger(__name__)


class HPIDStrategy(Strategy):
    """Authorization-code and bearer-token sign-in against HP ID.

    Args:
        config: Process-wide provider configuration.
        options: Registration options overriding ``default_scope``,
            ``uid_field`` and ``send_redirect_uri``.
        oauth: Pre-built :class:`HPIDOAuth`; built from *config* when omitted.
        transport: httpx transport forwarded to a newly built :class:`HPIDOAuth`.
    """

    def __init__(
        self,
        config: ProviderConfig,
        options: Optional[Mapping[str, Any]] = None,
        oauth: Optional[HPIDOAuth] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(options)
        self.config = config
        self.oauth = oauth or HPIDOAuth(config, transport=transport)

    @property
    def name(self) -> str:
        return "hpid"

    def default_options(self) -> dict[str, Any]:
        return {
            "default_scope": self.config.default_scope,
            "uid_field": self.config.uid_field,
            "send_redirect_uri": self.config.send_redirect_uri,
        }

    def redirect_uri(self, txn: Transaction) -> Optional[str]:
        """Configured ``redirect_uri`` override, else the host's callback URL."""
        return self.config.redirect_uri or txn.resolve_callback_url()

    # ------------------------------------------------------------------ #
    # Request phase
    # ------------------------------------------------------------------ #

    def handle_request(self, txn: Transaction) -> Redirect:
        """Redirect to the HP ID authorization page."""
        send_redirect_uri = bool(self.option("send_redirect_uri"))
        request = AuthorizationRequest(
            scope=_param_or(txn.params, "scope", self.option("default_scope")),
            state=txn.params.get("state"),
            redirect_uri=self.redirect_uri(txn) if send_redirect_uri else None,
            send_redirect_uri=send_redirect_uri,
        )
        overrides: dict[str, Any] = {} if send_redirect_uri else {"redirect_uri": None}
        url = self.oauth.authorize_url(request.to_params(), **overrides)
        txn.transition(TransactionState.REQUEST_SENT)
        return Redirect(location=url)

    # ------------------------------------------------------------------ #
    # Callback phase
    # ------------------------------------------------------------------ #

    def run_callback(self, txn: Transaction) -> None:
        """Dispatch on the callback parameters: ``code`` first, then ``access_token``."""
        if "code" in txn.params:
            txn.transition(TransactionState.CODE_RECEIVED)
            self._handle_code(txn, txn.params["code"])
        elif "access_token" in txn.params:
            txn.transition(TransactionState.TOKEN_RECEIVED)
            self._handle_access_token(txn, txn.params["access_token"])
        else:
            txn.transition(TransactionState.CREDENTIAL_MISSING)
            raise MissingCredential()

    def _handle_code(self, txn: Transaction, code: str) -> None:
        send_redirect_uri = bool(self.option("send_redirect_uri"))
        if send_redirect_uri:
            token = self.oauth.exchange_code(code, self.redirect_uri(txn))
        else:
            token = self.oauth.exchange_code(code, client_options={"redirect_uri": None})

        if token.access_token is None:
            detail = token.provider_error()
            raise ProviderError(detail.error, detail.error_description)
        self.fetch_user(txn, token)

    def _handle_access_token(self, txn: Transaction, access_token: str) -> None:
        # Token flow: the client already exchanged its code; we only verify
        # the token was issued to us before trusting it.
        token = TokenResponse.from_bearer(access_token)
        if not self.check_access_token(token):
            raise TokenInvalid("Token verification failed")
        self.fetch_user(txn, token)

    def check_access_token(self, token: TokenResponse) -> bool:
        """Verify *token* with HP ID, including the ``client_id`` audience match."""
        return self.oauth.validate(token)

    def fetch_user(self, txn: Transaction, token: TokenResponse) -> None:
        """Fetch the userinfo profile for *token* and store both on *txn*."""
        txn.token = token
        response = self.oauth.authenticated_get(token, ProviderConfig.USERINFO_PATH)

        if response.is_unauthorized:
            raise TokenInvalid("unauthorized")
        if not response.is_success:
            raise AuthFlowError(f"Unexpected status {response.status_code} from userinfo")
        if not isinstance(response.body, dict):
            raise AuthFlowError("Userinfo response is not a JSON object")
        # Checked here so the projections in _resolve can not fail.
        try:
            normalizer.info(response.body)
        except ValidationError as exc:
            raise AuthFlowError("Invalid userinfo response") from exc
        txn.user = response.body

    # ------------------------------------------------------------------ #
    # Result projections
    # ------------------------------------------------------------------ #

    def uid(self, txn: Transaction) -> Any:
        """User id from the field named by the ``uid_field`` option (default ``id``)."""
        return normalizer.uid(txn.user or {}, str(self.option("uid_field")))

    def credentials(self, txn: Transaction) -> Credentials:
        assert txn.token is not None
        return normalizer.credentials(txn.token)

    def info(self, txn: Transaction) -> Identity:
        return normalizer.info(txn.user or {})

    def extra(self, txn: Transaction) -> RawExtra:
        assert txn.token is not None
        return normalizer.extra(txn.token, txn.user or {})


def _param_or(params: Mapping[str, Any], key: str, default: Any) -> Any:
    # Only a missing key falls back; ``scope=`` is sent as an empty scope.
    value = params.get(key)
    return default if value is None else value
