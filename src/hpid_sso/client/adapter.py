"""Blocking HTTP adapter used for every call to the identity provider.

This module provides :class:`HTTPAdapter`, a thin wrapper around
:class:`httpx.Client` that:

- applies the provider's :class:`~hpid_sso.models.RequestConfig`
  (timeout, TLS verification) to every request,
- sends ``Accept: application/json`` unless the caller overrides it,
- returns a parsed :class:`~hpid_sso.models.ProviderResponse` for *every*
  HTTP status, leaving status interpretation to the OAuth layer,
- turns any :class:`httpx.HTTPError` into
  :class:`~hpid_sso.exceptions.OAuthTransportError`.

Requests are never retried. A transport failure ends the authentication
transaction and the user starts a new one.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from hpid_sso.client.response import to_provider_response
from hpid_sso.exceptions import OAuthTransportError
from hpid_sso.models import ProviderResponse, RequestConfig

logger = logging.getLogger(__name__)


class HTTPAdapter:
    """Synchronous HTTP client for identity provider calls.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        request: Timeout and TLS settings. Defaults to :class:`RequestConfig`.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        with HTTPAdapter(config.request) as http:
            response = http.get("https://directory.id.hp.com/directory/v1/userinfo")
    """

    def __init__(
        self,
        request: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._request = request or RequestConfig()
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> HTTPAdapter:
        self._client = httpx.Client(
            timeout=self._request.timeout,
            verify=self._request.verify_ssl,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> ProviderResponse:
        """Send a request and return the parsed response, whatever its status.

        Args:
            method: HTTP method.
            url: Absolute URL.
            params: Query parameters.
            headers: Extra request headers (override the defaults).
            data: Form-encoded body (application/x-www-form-urlencoded).

        Raises:
            OAuthTransportError: On connection, TLS, timeout or protocol errors.
        """
        assert self._client is not None, "Adapter not initialised -- use as context manager"

        merged_headers: dict[str, str] = {"Accept": "application/json"}
        merged_headers.update(headers or {})

        kwargs: dict[str, Any] = {
            "method": method,
            "url": url,
            "headers": merged_headers,
            "params": params or {},
        }
        if data is not None:
            kwargs["data"] = data

        try:
            response = self._client.request(**kwargs)
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %s", method, url, exc)
            raise OAuthTransportError(str(exc) or type(exc).__name__) from exc

        logger.debug("%s %s -> %s", method, url, response.status_code)
        return to_provider_response(response)

    def get(self, url: str, **kwargs: Any) -> ProviderResponse:
        """Send a GET request. See :meth:`request`."""
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> ProviderResponse:
        """Send a POST request. See :meth:`request`."""
        return self.request("POST", url, **kwargs)
