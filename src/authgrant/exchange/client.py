"""Token exchange clients for the authorization code grant.

This module provides :class:`TokenExchanger`, the contract the
:class:`~authgrant.grant.pkce.PKCEGrant` uses to trade an authorization code
and its PKCE verifier for tokens, and :class:`HttpTokenExchanger`, which
performs the exchange against a token endpoint with :mod:`httpx`.

Exchangers report failures inside a
:class:`~authgrant.grant.base.GrantResult` carrying an
:class:`~authgrant.exceptions.AuthenticationError` rather than raising.

See Also:
    :rfc:`6749#section-4.1.3` for the access token request and
    :rfc:`7636#section-4.5` for the ``code_verifier`` parameter.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from authgrant.exceptions import AuthenticationError
from authgrant.grant.base import GrantResult
from authgrant.models import DEFAULT_DASHBOARD_URL, Credentials, ProviderConfig

logger = logging.getLogger(__name__)


class TokenExchanger(ABC):
    """Abstract base class for authorization code exchange clients."""

    @property
    @abstractmethod
    def client_id(self) -> str:
        """The OAuth2 client identifier the exchange is performed for."""
        ...

    @property
    def settings_url(self) -> Optional[str]:
        """URL of the client's settings page at the provider, when known."""
        return None

    @abstractmethod
    async def exchange(self, code: str, verifier: str, redirect_uri: str) -> GrantResult:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the callback.
            verifier: The PKCE verifier generated for this attempt.
            redirect_uri: Redirect URI used in the authorization request.

        Returns:
            A :class:`~authgrant.grant.base.GrantResult` with the issued
            credentials, or an :class:`~authgrant.exceptions.AuthenticationError`.
        """
        ...


def _error_from_response(response: httpx.Response) -> AuthenticationError:
    """Map an error response from the token endpoint to an AuthenticationError.

    The description falls back to the HTTP reason phrase, so a bare 401
    yields ``"Unauthorized"``.
    """
    payload: dict[str, Any] = {}
    try:
        body = response.json()
        if isinstance(body, dict):
            payload = body
    except ValueError:
        pass

    code = payload.get("error") or payload.get("code")
    description = (
        payload.get("error_description")
        or payload.get("description")
        or payload.get("message")
        or response.reason_phrase
        or f"HTTP {response.status_code}"
    )
    return AuthenticationError(
        str(description),
        code=str(code) if code is not None else None,
        status_code=response.status_code,
        raw=payload,
    )


class HttpTokenExchanger(TokenExchanger):
    """Exchange authorization codes at an OAuth2 token endpoint over HTTP.

    Each call to :meth:`exchange` opens its own :class:`httpx.AsyncClient`
    and posts a form-encoded ``authorization_code`` request.

    Args:
        token_url: The provider's token endpoint.
        client_id: Public client identifier (PKCE clients have no secret).
        timeout: Request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        dashboard_url: Template for the client's settings page; ``{client_id}``
            is substituted.
        transport: Optional custom :mod:`httpx` transport, mainly for tests.

    Example::

        exchanger = HttpTokenExchanger("https://tenant.example.com/oauth/token", "abc123")
        result = await exchanger.exchange(code, verifier, "myapp://callback")
    """

    def __init__(
        self,
        token_url: str,
        client_id: str,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        dashboard_url: Optional[str] = DEFAULT_DASHBOARD_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token_url = token_url
        self._client_id = client_id
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._dashboard_url = dashboard_url
        self._transport = transport

    @classmethod
    def from_provider(
        cls,
        provider: ProviderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> HttpTokenExchanger:
        """Build an exchanger from a stored provider profile."""
        return cls(
            token_url=provider.token_url,
            client_id=provider.client_id,
            timeout=provider.request.timeout,
            verify_ssl=provider.request.verify_ssl,
            dashboard_url=provider.dashboard_url,
            transport=transport,
        )

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def token_url(self) -> str:
        return self._token_url

    @property
    def settings_url(self) -> Optional[str]:
        if not self._dashboard_url:
            return None
        try:
            return self._dashboard_url.format(client_id=self._client_id)
        except (KeyError, IndexError, ValueError) as exc:
            logger.debug("Ignoring unusable dashboard_url template %r: %s", self._dashboard_url, exc)
            return None

    async def exchange(self, code: str, verifier: str, redirect_uri: str) -> GrantResult:
        data: dict[str, str] = {
            "grant_type": "authorization_code",
            "client_id": self._client_id,
            "code": code,
            "code_verifier": verifier,
            "redirect_uri": redirect_uri,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                verify=self._verify_ssl,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self._token_url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.debug(
                "Token exchange at %s failed with status %s",
                self._token_url,
                exc.response.status_code,
            )
            return GrantResult.failure(_error_from_response(exc.response))
        except httpx.HTTPError as exc:
            logger.debug("Token exchange at %s failed: %s", self._token_url, exc)
            return GrantResult.failure(
                AuthenticationError(f"Token exchange failed: {exc}", code="network_error")
            )

        try:
            token_data = response.json()
        except ValueError:
            token_data = None
        if not isinstance(token_data, dict):
            return GrantResult.failure(
                AuthenticationError(
                    "Token response is not a JSON object",
                    code="invalid_response",
                    status_code=response.status_code,
                )
            )

        try:
            credentials = Credentials.from_values(token_data)
        except ValidationError as exc:
            return GrantResult.failure(
                AuthenticationError(
                    f"Token response has unexpected field types: {exc}",
                    code="invalid_response",
                    status_code=response.status_code,
                    raw=token_data,
                )
            )

        logger.debug("Token exchange at %s succeeded", self._token_url)
        return GrantResult.success(credentials)

    def __repr__(self) -> str:
        return f"HttpTokenExchanger(token_url={self._token_url!r}, client_id={self._client_id!r})"
