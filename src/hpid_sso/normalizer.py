"""Result normalizer -- pure projections of provider data into auth records.

Every function here is side-effect free and may only be called once a
transaction has stored both its token and its userinfo profile.
"""

from __future__ import annotations

from typing import Any

from hpid_sso.models import Credentials, Identity, RawExtra, TokenResponse, UserProfile


def uid(profile: UserProfile, uid_field: str) -> Any:
    """Return the user identifier stored under *uid_field*.

    ``"email"`` is read through :func:`fetch_email`: a private email is not
    part of the default field mapping and must be fetched explicitly.
    """
    if uid_field == "email":
        return fetch_email(profile)
    return profile.get(uid_field)


def fetch_email(profile: UserProfile) -> Any:
    return profile.get("email")


def credentials(token: TokenResponse) -> Credentials:
    """Project the token into :class:`Credentials`.

    ``scopes`` is the scope string split on ``","``; a token without a
    scope yields ``[""]``.
    """
    return Credentials(
        token=token.access_token,
        refresh_token=token.refresh_token,
        expires_at=token.expires_at,
        token_type=token.token_type,
        expires=token.expires_at is not None,
        scopes=token.scope.split(","),
    )


def info(profile: UserProfile) -> Identity:
    return Identity(
        name=profile.get("name"),
        first_name=profile.get("given_name"),
        last_name=profile.get("family_name"),
        nickname=profile.get("sub"),
        email=profile.get("email"),
    )


def extra(token: TokenResponse, profile: UserProfile) -> RawExtra:
    """Keep the raw token and userinfo payload next to the normalised views."""
    return RawExtra(raw_info={"token": token.model_dump(), "user": dict(profile)})
