"""Authorization Code grant with Proof Key for Code Exchange (:rfc:`7636`).

:class:`PKCEGrant` sends a challenge with the authorization request, then
trades the returned code together with the matching verifier for tokens via
a :class:`~authgrant.exchange.TokenExchanger`. The verifier is the only link
between the two requests, so the grant always replays the verifier it was
built with and never logs or prints it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional

from authgrant.exceptions import (
    AuthenticationError,
    AuthgrantError,
    InvalidIdTokenNonceError,
    PKCENotAllowedError,
)
from authgrant.grant.base import GrantResult, OAuth2Grant
from authgrant.grant.challenge import ChallengeGenerator
from authgrant.grant.nonce import validate_nonce
from authgrant.grant.redirect import RedirectComponents
from authgrant.models import ResponseType

if TYPE_CHECKING:
    from authgrant.exchange import TokenExchanger

logger = logging.getLogger(__name__)


def pkce_defaults(challenge: str, method: str, nonce: Optional[str] = None) -> dict[str, str]:
    """Authorization request parameters for a PKCE challenge, plus *nonce* when given."""
    defaults = {"code_challenge": challenge, "code_challenge_method": method}
    if nonce is not None:
        defaults["nonce"] = nonce
    return defaults


def _pkce_not_allowed(exchanger: TokenExchanger) -> PKCENotAllowedError:
    client_id = exchanger.client_id
    settings_url = exchanger.settings_url
    if settings_url:
        where = f"Please go to '{settings_url}' and make sure"
    else:
        where = "Please make sure in the client's settings that"
    return PKCENotAllowedError(
        f"Client '{client_id}' is not allowed to use PKCE. "
        f"{where} 'Client Type' is 'Native' to enable PKCE."
    )


class PKCEGrant(OAuth2Grant):
    """Handle an authorization code response and exchange the code with PKCE.

    Use :meth:`from_generator` to create a grant with a freshly generated
    verifier; pass the verifier, challenge and method directly when they
    must be deterministic (e.g. in tests).

    Args:
        exchanger: Client that performs the code exchange.
        redirect_url: Redirect URL used in the authorization request; sent
            again with the exchange.
        verifier: The PKCE code verifier.
        challenge: The challenge derived from *verifier*.
        method: The challenge method name (``"S256"``).
        response_type: Response kinds requested. Defaults to
            ``[ResponseType.CODE]``.
        nonce: Nonce sent with the request; required to accept an ID token.
    """

    def __init__(
        self,
        exchanger: TokenExchanger,
        redirect_url: str,
        verifier: str,
        challenge: str,
        method: str,
        response_type: Sequence[ResponseType] = (ResponseType.CODE,),
        nonce: Optional[str] = None,
    ) -> None:
        self._exchanger = exchanger
        self._redirect_url = redirect_url
        self._verifier = verifier
        self._response_type = tuple(response_type)
        self._defaults = MappingProxyType(pkce_defaults(challenge, method, nonce))

    @classmethod
    def from_generator(
        cls,
        exchanger: TokenExchanger,
        redirect_url: str,
        generator: Optional[ChallengeGenerator] = None,
        response_type: Sequence[ResponseType] = (ResponseType.CODE,),
        nonce: Optional[str] = None,
    ) -> PKCEGrant:
        """Create a grant from a :class:`~authgrant.grant.challenge.ChallengeGenerator`.

        A new S256 verifier/challenge pair is generated when *generator* is
        not given.
        """
        if generator is None:
            generator = ChallengeGenerator.generate()
        return cls(
            exchanger,
            redirect_url,
            verifier=generator.verifier,
            challenge=generator.challenge,
            method=generator.method,
            response_type=response_type,
            nonce=nonce,
        )

    @property
    def defaults(self) -> Mapping[str, str]:
        return self._defaults

    @property
    def response_type(self) -> tuple[ResponseType, ...]:
        return self._response_type

    @property
    def redirect_url(self) -> str:
        return self._redirect_url

    @property
    def verifier(self) -> str:
        return self._verifier

    @property
    def exchanger(self) -> TokenExchanger:
        return self._exchanger

    def values_from_redirect(self, components: RedirectComponents) -> dict[str, str]:
        """Merge fragment and query parameters; query values win on collision."""
        items = dict(components.fragment_values)
        items.update(components.query_values)
        return items

    async def credentials_from(self, values: Mapping[str, str]) -> GrantResult:
        logger.debug("PKCE grant received keys: %s", sorted(values))

        code = values.get("code")
        if code is None:
            # The provider sent an error payload instead of a code; keep all of it.
            raw = dict(values)
            payload = json.dumps(raw, separators=(",", ":"))
            return GrantResult.failure(AuthenticationError(payload, code=raw.get("error"), raw=raw))

        if not validate_nonce(self._response_type, values.get("id_token"), self._defaults.get("nonce")):
            return GrantResult.failure(InvalidIdTokenNonceError())

        try:
            result = await self._exchanger.exchange(code, self._verifier, str(self._redirect_url))
        except AuthgrantError as exc:
            result = GrantResult.failure(exc)

        error = result.error
        if isinstance(error, AuthenticationError) and error.is_unauthorized:
            logger.debug("Token exchange rejected as unauthorized; client may not allow PKCE")
            return GrantResult.failure(_pkce_not_allowed(self._exchanger))
        return result

    def __repr__(self) -> str:
        types = [rt.value for rt in self._response_type]
        return f"PKCEGrant(redirect_url={self._redirect_url!r}, response_type={types!r})"
