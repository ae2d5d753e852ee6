"""ID token decoding and nonce binding.

The nonce check ties an ID token to the authorization request that asked
for it. Only the token's encoding is checked here; signature verification
belongs to a separate stage.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Optional

import jwt

from authgrant.exceptions import InvalidTokenError
from authgrant.models import ResponseType

logger = logging.getLogger(__name__)


class DecodedToken:
    """Claims of a structurally valid, unverified JWT."""

    def __init__(self, claims: dict[str, Any]) -> None:
        self._claims = claims

    def claim(self, name: str) -> Optional[str]:
        """Return the claim *name* when it is a string, otherwise ``None``."""
        value = self._claims.get(name)
        return value if isinstance(value, str) else None


def decode_id_token(token: str) -> DecodedToken:
    """Decode *token* without verifying its signature.

    Raises:
        InvalidTokenError: If the token is not a well-formed JWT.
    """
    try:
        claims: dict[str, Any] = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(f"Invalid ID token: {exc}") from exc
    return DecodedToken(claims)


def validate_nonce(
    response_type: Sequence[ResponseType],
    token: Optional[str],
    nonce: Optional[str],
) -> bool:
    """Check the ``nonce`` claim of *token* against the expected *nonce*.

    Always passes when no ID token was requested. Otherwise the token and the
    nonce must both be present, the token must decode, and its ``nonce``
    claim must equal *nonce* exactly.
    """
    if ResponseType.ID_TOKEN not in response_type:
        return True
    if token is None or nonce is None:
        logger.debug("Nonce validation failed: id_token or expected nonce missing")
        return False
    try:
        decoded = decode_id_token(token)
    except InvalidTokenError:
        logger.debug("Nonce validation failed: id_token could not be decoded")
        return False
    return decoded.claim("nonce") == nonce
