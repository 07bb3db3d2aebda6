"""Canonical Pydantic models shared across all hpid_sso modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration models** -- loaded once at start-up and treated as
read-only afterwards: :class:`RequestConfig` and :class:`ProviderConfig`.

**Wire models** -- produced at the boundary where provider JSON is parsed:
:class:`TokenResponse`, :class:`ProviderErrorDetail`,
:class:`ProviderResponse`, plus the request-phase :class:`AuthorizationRequest`
and :class:`Redirect`.

**Result models** -- handed back to the host application at the end of a
transaction: :class:`Identity`, :class:`Credentials`, :class:`RawExtra`,
:class:`AuthResult`, :class:`FailureEntry` and :class:`AuthFailure`.

All models use Pydantic v2.
"""

from __future__ import annotations

import time
from typing import Any, ClassVar, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


PRODUCTION_HOST = "https://directory.id.hp.com"
STAGING_HOST = "https://directory.stg.cd.id.hp.com"

DEFAULT_SCOPE = "openid+profile+email"

UserProfile = dict[str, Any]
"""Raw key/value mapping returned by the userinfo endpoint (``sub``, ``name``, ``email``, ...)."""


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every call made to the identity provider."""

    model_config = ConfigDict(frozen=True)

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")


class ProviderConfig(BaseModel):
    """Process-wide HP ID provider configuration.

    Loaded once by :func:`~hpid_sso.config.resolve_provider_config` and
    never mutated afterwards. ``client_id`` and ``client_secret`` are
    optional here so that a partially configured process can still start;
    :meth:`~hpid_sso.oauth.hpid.HPIDOAuth.build_client` rejects the
    configuration when either is missing.

    The three endpoint URLs are derived from :attr:`site_host` and can not
    be configured on their own.

    Example::

        ProviderConfig(
            client_id="abc",
            client_secret="s3cret",
            use_staging=True,
            redirect_uri="https://example.com/auth/hpid/callback",
        )
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    AUTHORIZE_PATH: ClassVar[str] = "/directory/v1/oauth/authorize"
    TOKEN_PATH: ClassVar[str] = "/directory/v1/oauth/token"
    INTROSPECT_PATH: ClassVar[str] = "/directory/v1/oauth/validate"
    USERINFO_PATH: ClassVar[str] = "/directory/v1/userinfo"

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    client_id_source: Optional[str] = Field(
        default=None, description="Credential source for client_id: env:VAR or file:/path"
    )
    client_secret_source: Optional[str] = Field(
        default=None, description="Credential source for client_secret: env:VAR or file:/path"
    )
    use_staging: bool = Field(
        default=False,
        validation_alias=AliasChoices("use_staging", "use_stage"),
        description="Talk to the HP ID staging directory instead of production",
    )
    redirect_uri: Optional[str] = Field(
        default=None, description="Override for the computed callback URL"
    )
    default_scope: str = DEFAULT_SCOPE
    uid_field: str = "id"
    send_redirect_uri: bool = True
    request: RequestConfig = Field(default_factory=RequestConfig)

    @property
    def site_host(self) -> str:
        """Base URL of the selected directory (staging or production)."""
        return STAGING_HOST if self.use_staging else PRODUCTION_HOST

    @property
    def authorize_url(self) -> str:
        return f"{self.site_host}{self.AUTHORIZE_PATH}"

    @property
    def token_url(self) -> str:
        return f"{self.site_host}{self.TOKEN_PATH}"

    @property
    def introspect_url(self) -> str:
        return f"{self.site_host}{self.INTROSPECT_PATH}"


# --- Wire models ---


class AuthorizationRequest(BaseModel):
    """Parameters of one request-phase invocation. Never persisted."""

    scope: str
    state: Optional[str] = None
    redirect_uri: Optional[str] = None
    send_redirect_uri: bool = True

    def to_params(self) -> dict[str, str]:
        """Return the authorize query parameters this request contributes."""
        params: dict[str, str] = {}
        if self.send_redirect_uri and self.redirect_uri:
            params["redirect_uri"] = self.redirect_uri
        params["scope"] = self.scope
        if self.state is not None:
            params["state"] = self.state
        return params


class Redirect(BaseModel):
    """HTTP redirect emitted by the request phase."""

    location: str
    status_code: int = 302


class ProviderErrorDetail(BaseModel):
    """OAuth error reported by the token endpoint in place of an access token."""

    error: Optional[str] = None
    error_description: Optional[str] = None


class TokenResponse(BaseModel):
    """An OAuth2 access token scoped to a single callback transaction.

    Built from the token endpoint JSON by :meth:`from_payload`, or from a
    caller-supplied bearer string by :meth:`from_bearer`. Keys outside the
    standard token fields are kept verbatim in ``other_params``.
    """

    STANDARD_FIELDS: ClassVar[tuple[str, ...]] = (
        "access_token",
        "refresh_token",
        "token_type",
        "expires_in",
        "expires_at",
    )
    STRING_PARAMS: ClassVar[tuple[str, ...]] = ("scope", "error", "error_description")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    expires_at: Optional[int] = None
    other_params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("other_params")
    @classmethod
    def _check_string_params(cls, value: dict[str, Any]) -> dict[str, Any]:
        for key in cls.STRING_PARAMS:
            if value.get(key) is not None and not isinstance(value[key], str):
                raise ValueError(f"'{key}' must be a string")
        return value

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> TokenResponse:
        """Parse a token endpoint response body.

        ``expires_at`` is taken verbatim when present, otherwise computed
        from ``expires_in`` relative to now (unix seconds).

        Raises:
            pydantic.ValidationError: If a token field, or ``scope``,
                ``error`` or ``error_description``, has the wrong type.
        """
        other = {k: v for k, v in data.items() if k not in cls.STANDARD_FIELDS}
        expires_at = _to_int(data.get("expires_at"))
        if expires_at is None:
            expires_in = _to_int(data.get("expires_in"))
            if expires_in is not None:
                expires_at = int(time.time()) + expires_in
        return cls(
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            token_type=_normalize_token_type(data.get("token_type")),
            expires_at=expires_at,
            other_params=other,
        )

    @classmethod
    def from_bearer(cls, access_token: str) -> TokenResponse:
        """Wrap a bearer token received directly by the callback (token flow)."""
        return cls(access_token=access_token)

    @property
    def scope(self) -> str:
        """Scope string granted with this token, ``""`` when the provider sent none."""
        return self.other_params.get("scope") or ""

    def provider_error(self) -> ProviderErrorDetail:
        """Return the provider-reported error carried by ``other_params``."""
        return ProviderErrorDetail(
            error=self.other_params.get("error"),
            error_description=self.other_params.get("error_description"),
        )


class ProviderResponse(BaseModel):
    """Result of one HTTP exchange with the provider.

    ``body`` is parsed JSON when the payload is JSON, raw text otherwise,
    and ``None`` for an empty body.
    """

    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None

    @property
    def is_success(self) -> bool:
        """``True`` for statuses 200 through 399 inclusive."""
        return 200 <= self.status_code < 400

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


# --- Results ---


class Identity(BaseModel):
    """Normalised identity information about the signed-in user."""

    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    nickname: Optional[str] = None
    email: Optional[str] = None


class Credentials(BaseModel):
    """Normalised view of the access token."""

    token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    token_type: Optional[str] = None
    expires: bool = False
    scopes: list[str] = Field(default_factory=list)


class RawExtra(BaseModel):
    """Raw provider data (token and userinfo) kept alongside the normalised views."""

    raw_info: dict[str, Any] = Field(default_factory=dict)


class AuthResult(BaseModel):
    """Successful outcome of a callback transaction."""

    provider: str
    uid: Any = None
    info: Identity
    credentials: Credentials
    extra: RawExtra


class FailureEntry(BaseModel):
    """A single ``kind`` / ``message`` failure pair."""

    kind: str
    message: str


class AuthFailure(BaseModel):
    """Failed outcome of a callback transaction."""

    provider: str
    errors: list[FailureEntry] = Field(default_factory=list)


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _normalize_token_type(value: Any) -> str:
    # Providers disagree on case ("bearer" vs "Bearer").
    if not value or str(value).lower() == "bearer":
        return "Bearer"
    return str(value)
