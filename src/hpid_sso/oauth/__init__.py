"""OAuth2 client layer.

Exports:
    :class:`OAuthClient` -- generic authorization-code client.
    :class:`HPIDOAuth` -- HP ID specifics (host selection, ``client_secret``
    parameter, token validation).
"""

from hpid_sso.oauth.client import OAuthClient
from hpid_sso.oauth.hpid import HPIDOAuth

__all__ = ["HPIDOAuth", "OAuthClient"]
