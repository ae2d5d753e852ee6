"""Token exchange clients for the authorization code grant.

- :class:`TokenExchanger` -- abstract contract used by
  :class:`~authgrant.grant.pkce.PKCEGrant`.
- :class:`HttpTokenExchanger` -- :mod:`httpx` implementation posting to a
  token endpoint.
"""

from authgrant.exchange.client import (
    DEFAULT_DASHBOARD_URL,
    HttpTokenExchanger,
    TokenExchanger,
)

__all__ = ["DEFAULT_DASHBOARD_URL", "HttpTokenExchanger", "TokenExchanger"]
