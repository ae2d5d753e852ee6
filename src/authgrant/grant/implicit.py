"""Implicit grant: tokens are returned directly in the redirect fragment."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Optional

from authgrant.exceptions import InvalidIdTokenNonceError, MissingAccessTokenError
from authgrant.grant.base import GrantResult, OAuth2Grant
from authgrant.grant.nonce import validate_nonce
from authgrant.grant.redirect import RedirectComponents
from authgrant.models import Credentials, ResponseType

logger = logging.getLogger(__name__)


class ImplicitGrant(OAuth2Grant):
    """Handle an implicit-flow authorization response.

    Args:
        response_type: Response kinds requested from the provider. Defaults
            to ``[ResponseType.TOKEN]``.
        nonce: Nonce sent with the request; required to accept an ID token.
    """

    def __init__(
        self,
        response_type: Sequence[ResponseType] = (ResponseType.TOKEN,),
        nonce: Optional[str] = None,
    ) -> None:
        self._response_type = tuple(response_type)
        defaults: dict[str, str] = {}
        if nonce is not None:
            defaults["nonce"] = nonce
        self._defaults = MappingProxyType(defaults)

    @property
    def defaults(self) -> Mapping[str, str]:
        return self._defaults

    @property
    def response_type(self) -> tuple[ResponseType, ...]:
        return self._response_type

    def values_from_redirect(self, components: RedirectComponents) -> dict[str, str]:
        """Return the fragment parameters only.

        The implicit flow delivers tokens in the fragment; query parameters
        are ignored so they cannot inject values into the response.
        """
        return dict(components.fragment_values)

    async def credentials_from(self, values: Mapping[str, str]) -> GrantResult:
        logger.debug("Implicit grant received keys: %s", sorted(values))

        if not validate_nonce(self._response_type, values.get("id_token"), self._defaults.get("nonce")):
            return GrantResult.failure(InvalidIdTokenNonceError())

        if ResponseType.TOKEN in self._response_type and "access_token" not in values:
            return GrantResult.failure(MissingAccessTokenError())

        return GrantResult.success(Credentials.from_values(values))

    def __repr__(self) -> str:
        types = [rt.value for rt in self._response_type]
        return f"ImplicitGrant(response_type={types!r})"
