"""Exception hierarchy for authgrant.

All exceptions inherit from :class:`AuthgrantError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`authgrant.exit_codes`.

Grants never raise these across their boundary: validation and exchange
failures are returned inside a :class:`~authgrant.grant.base.GrantResult`.
They are raised by :meth:`GrantResult.unwrap`, by the configuration layer and
by the CLI, whose top-level handler in :func:`authgrant.app.main` turns them
into an exit code.

Subclass hierarchy::

    AuthgrantError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConfigError                (exit 1)
    +-- WebAuthError               (exit 3)
    |   +-- InvalidIdTokenNonceError
    |   +-- MissingAccessTokenError
    |   +-- PKCENotAllowedError
    +-- AuthenticationError        (exit 3)
    +-- InvalidTokenError          (exit 3)
"""

from __future__ import annotations

from typing import Any, Optional

from authgrant.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)

UNAUTHORIZED_DESCRIPTION = "Unauthorized"
"""Description the provider returns when the token endpoint rejects a public client."""

UNAUTHORIZED_CODES = frozenset({"unauthorized", "unauthorized_client"})
"""Structured error codes treated the same as :data:`UNAUTHORIZED_DESCRIPTION`."""


class AuthgrantError(Exception):
    """Base exception for all authgrant errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`authgrant.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AuthgrantError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(AuthgrantError):
    """Raised for configuration problems (missing providers, invalid JSON)."""

    exit_code = EXIT_GENERIC_FAILURE


class WebAuthError(AuthgrantError):
    """Raised when an authorization response fails local validation."""

    exit_code = EXIT_AUTH_FAILURE


class InvalidIdTokenNonceError(WebAuthError):
    """The ID token is missing, undecodable, or its ``nonce`` claim does not match."""

    def __init__(self, message: str = "ID token validation failed: nonce mismatch") -> None:
        super().__init__(message)


class MissingAccessTokenError(WebAuthError):
    """A ``token`` response was requested but no ``access_token`` was returned."""

    def __init__(self, message: str = "Authorization response is missing 'access_token'") -> None:
        super().__init__(message)


class PKCENotAllowedError(WebAuthError):
    """The token endpoint refused the PKCE exchange for a misconfigured client.

    The message tells the user how to fix the client registration.
    """


class AuthenticationError(AuthgrantError):
    """An error reported by the identity provider.

    Produced both for callbacks that carry no authorization code (the
    provider sent an error payload instead) and for failed token exchanges.

    Args:
        description: Human-readable description of the failure.  For a
            callback without a code this is the JSON-serialised callback
            parameters.
        code: The provider's machine-readable error code, when known
            (e.g. ``"access_denied"``).
        status_code: HTTP status of the token endpoint response, when the
            error came from an exchange.
        raw: The raw payload the error was built from.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(
        self,
        description: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        raw: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(description)
        self.description = description
        self.code = code
        self.status_code = status_code
        self.raw = dict(raw) if raw is not None else {}

    @property
    def is_unauthorized(self) -> bool:
        """Whether this is the provider's generic "Unauthorized" rejection."""
        if self.code is not None and self.code in UNAUTHORIZED_CODES:
            return True
        return self.description == UNAUTHORIZED_DESCRIPTION

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.description}"
        return self.description


class InvalidTokenError(AuthgrantError):
    """Raised when an ID token cannot be decoded."""

    exit_code = EXIT_AUTH_FAILURE
