"""HTTP client adapter for identity provider calls.

Exports :class:`HTTPAdapter` and the response helpers from
:mod:`hpid_sso.client.response`.
"""

from hpid_sso.client.adapter import HTTPAdapter
from hpid_sso.client.response import extract_response_data, to_provider_response

__all__ = ["HTTPAdapter", "extract_response_data", "to_provider_response"]
