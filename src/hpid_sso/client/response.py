"""Response parsing -- maps :class:`httpx.Response` to :class:`~hpid_sso.models.ProviderResponse`.

The identity provider answers JSON for every endpoint this package calls,
but error pages from proxies and load balancers are HTML or plain text.
:func:`extract_response_data` parses what it can and falls back to text
so callers never have to guard ``response.json()`` themselves.
"""

from __future__ import annotations

from typing import Any

import httpx

from hpid_sso.models import ProviderResponse


def to_provider_response(response: httpx.Response) -> ProviderResponse:
    """Convert an :class:`httpx.Response` into a :class:`ProviderResponse`."""
    return ProviderResponse(
        status_code=response.status_code,
        headers=dict(response.headers),
        body=extract_response_data(response),
    )


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is HTML or plain text), returns the raw text. Returns
    ``None`` for responses with no content.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        pass

    return response.text
