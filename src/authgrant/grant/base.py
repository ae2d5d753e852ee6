"""Abstract base class for OAuth2 grants.

This module defines the two foundational types of the grant subsystem:

- :class:`GrantResult` -- the outcome of handling one authorization
  response: either :class:`~authgrant.models.Credentials` or a typed
  :class:`~authgrant.exceptions.AuthgrantError`.
- :class:`OAuth2Grant` -- the abstract base class both grant variants
  extend.

A grant is used for exactly one authorization attempt:

1. :attr:`~OAuth2Grant.defaults` are merged into the authorization request.
2. :meth:`~OAuth2Grant.values_from_redirect` flattens the callback URL into
   a parameter mapping.
3. :meth:`~OAuth2Grant.credentials_from` validates the parameters and
   returns a :class:`GrantResult`.

See Also:
    :class:`~authgrant.grant.implicit.ImplicitGrant` and
    :class:`~authgrant.grant.pkce.PKCEGrant`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Optional, cast

from authgrant.exceptions import AuthgrantError
from authgrant.grant.redirect import RedirectComponents
from authgrant.models import Credentials


class GrantResult:
    """Outcome of :meth:`OAuth2Grant.credentials_from`.

    Exactly one of :attr:`credentials` and :attr:`error` is set. Build
    instances with :meth:`success` or :meth:`failure`.

    Example::

        result = await grant.credentials_from(values)
        if result.ok:
            use(result.credentials)
        else:
            report(result.error)
    """

    __slots__ = ("_credentials", "_error")

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        error: Optional[AuthgrantError] = None,
    ) -> None:
        if (credentials is None) == (error is None):
            raise ValueError("GrantResult needs exactly one of credentials or error")
        self._credentials = credentials
        self._error = error

    @classmethod
    def success(cls, credentials: Credentials) -> GrantResult:
        return cls(credentials=credentials)

    @classmethod
    def failure(cls, error: AuthgrantError) -> GrantResult:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self._error is None

    @property
    def credentials(self) -> Optional[Credentials]:
        return self._credentials

    @property
    def error(self) -> Optional[AuthgrantError]:
        return self._error

    def unwrap(self) -> Credentials:
        """Return the credentials, or raise the carried error.

        Raises:
            AuthgrantError: The failure this result carries.
        """
        if self._error is not None:
            raise self._error
        return cast(Credentials, self._credentials)

    def __repr__(self) -> str:
        if self._error is not None:
            return f"GrantResult(error={self._error!r})"
        return f"GrantResult(credentials={self._credentials!r})"


class OAuth2Grant(ABC):
    """Abstract base class for the grant used by one authorization attempt.

    Grants are immutable once constructed; they hold no process-wide state
    and are not shared between attempts.
    """

    @property
    @abstractmethod
    def defaults(self) -> Mapping[str, str]:
        """Extra parameters to merge into the authorization request.

        Returns:
            A read-only mapping, e.g. ``{"nonce": "..."}`` or the PKCE
            ``code_challenge`` / ``code_challenge_method`` pair.
        """
        ...

    @abstractmethod
    def values_from_redirect(self, components: RedirectComponents) -> dict[str, str]:
        """Flatten the callback URL into a single parameter mapping.

        No validation happens here.

        Args:
            components: The parsed callback URL.

        Returns:
            A new ``dict`` of callback parameters.
        """
        ...

    @abstractmethod
    async def credentials_from(self, values: Mapping[str, str]) -> GrantResult:
        """Validate callback parameters and produce credentials.

        Every failure is reported inside the returned :class:`GrantResult`;
        nothing is raised for a rejected response.

        Args:
            values: Parameters returned by :meth:`values_from_redirect`.

        Returns:
            A :class:`GrantResult` holding credentials or a typed error.
        """
        ...
