"""PKCE code verifier / challenge generation (:rfc:`7636`).

Uses the S256 method: the challenge is the unpadded base64url encoding of the
SHA-256 digest of the verifier.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
from dataclasses import dataclass, field

S256 = "S256"


def _s256(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


@dataclass(frozen=True)
class ChallengeGenerator:
    """A PKCE verifier together with the challenge derived from it.

    The verifier stays in memory for one authorization attempt and is left
    out of ``repr()``.

    Attributes:
        verifier: High-entropy secret sent only with the token exchange.
        challenge: Derived value sent with the authorization request.
        method: Challenge method name sent as ``code_challenge_method``.
    """

    verifier: str = field(repr=False)
    challenge: str
    method: str = S256

    @classmethod
    def generate(cls, length: int = 32) -> ChallengeGenerator:
        """Generate a fresh verifier and its S256 challenge.

        Args:
            length: Number of random bytes. 32 bytes yields a 43-character
                verifier, the minimum allowed; at most 96 bytes keeps the
                verifier within the 128-character maximum.

        Returns:
            A new :class:`ChallengeGenerator`.
        """
        if not 32 <= length <= 96:
            raise ValueError("length must be between 32 and 96 bytes")
        return cls.from_verifier(secrets.token_urlsafe(length))

    @classmethod
    def from_verifier(cls, verifier: str) -> ChallengeGenerator:
        """Derive the S256 challenge for an existing *verifier*."""
        return cls(verifier=verifier, challenge=_s256(verifier))
