"""OAuth2 grants that turn an authorization response into credentials.

The main entry points are:

- :class:`OAuth2Grant` -- abstract base class shared by both grants.
- :class:`ImplicitGrant` -- tokens delivered in the redirect fragment.
- :class:`PKCEGrant` -- authorization code exchanged with a PKCE verifier.
- :class:`GrantResult` -- the outcome of :meth:`OAuth2Grant.credentials_from`.
- :class:`RedirectComponents` -- parsed callback URL.
- :class:`ChallengeGenerator` -- PKCE verifier/challenge pair.
- :func:`validate_nonce` -- ID token nonce binding.

Typical usage::

    from authgrant.grant import ImplicitGrant, RedirectComponents

    grant = ImplicitGrant(nonce=nonce)
    values = grant.values_from_redirect(RedirectComponents.from_url(callback_url))
    result = await grant.credentials_from(values)
"""

from authgrant.grant.base import GrantResult, OAuth2Grant
from authgrant.grant.challenge import ChallengeGenerator
from authgrant.grant.implicit import ImplicitGrant
from authgrant.grant.nonce import DecodedToken, decode_id_token, validate_nonce
from authgrant.grant.pkce import PKCEGrant, pkce_defaults
from authgrant.grant.redirect import RedirectComponents

__all__ = [
    "ChallengeGenerator",
    "DecodedToken",
    "GrantResult",
    "ImplicitGrant",
    "OAuth2Grant",
    "PKCEGrant",
    "RedirectComponents",
    "decode_id_token",
    "pkce_defaults",
    "validate_nonce",
]
