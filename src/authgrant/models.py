"""Canonical Pydantic models shared across all authgrant modules.

The models fall into two groups:

**Authorization models** -- produced and consumed by the grants:
    :class:`ResponseType` and :class:`Credentials`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`ProviderConfig`, :class:`OutputConfig`
    and :class:`GlobalConfig`.

All models use Pydantic v2. :class:`Credentials` uses ``extra="allow"`` so
that provider-specific keys in the authorization response are preserved in
``model_extra``.
"""

from __future__ import annotations

import enum
import string
from collections.abc import Mapping
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DASHBOARD_URL = "https://manage.auth0.com/#/applications/{client_id}/settings"
"""Default template for a client's settings page at the provider."""


# --- Authorization ---


class ResponseType(str, enum.Enum):
    """Response kinds that can be requested from the authorization endpoint.

    The values are the OAuth2 / OpenID Connect wire names, so a list of
    response types joins into the ``response_type`` request parameter with
    ``" ".join(rt.value for rt in types)``.
    """

    CODE = "code"
    TOKEN = "token"
    ID_TOKEN = "id_token"


class Credentials(BaseModel):
    """Tokens obtained from an authorization response or a token exchange.

    Built directly from the validated parameter mapping with
    :meth:`from_values`; no fields are synthesised. Token values are kept out
    of ``repr()`` so credentials can be logged or printed in tracebacks
    without leaking secrets.

    Example::

        creds = Credentials.from_values({"access_token": "abc", "token_type": "Bearer"})
        assert creds.access_token == "abc"
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    access_token: Optional[str] = Field(default=None, repr=False)
    token_type: Optional[str] = None
    id_token: Optional[str] = Field(default=None, repr=False)
    refresh_token: Optional[str] = Field(default=None, repr=False)
    expires_in: Optional[int] = Field(
        default=None, description="Access token lifetime in seconds"
    )
    scope: Optional[str] = None

    @field_validator("expires_in", mode="before")
    @classmethod
    def _coerce_expires_in(cls, value: Any) -> Optional[int]:
        # Fragments carry "3600", token endpoints carry 3600; anything else is dropped.
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @classmethod
    def from_values(cls, values: Mapping[str, Any]) -> Credentials:
        """Build credentials from callback or token-endpoint key/value pairs.

        Args:
            values: The parameter mapping. Keys other than the declared
                fields are preserved in ``model_extra``.

        Returns:
            A new :class:`Credentials` instance.
        """
        return cls.model_validate(dict(values))


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to the token exchange request."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class ProviderConfig(BaseModel):
    """Identity provider settings stored as JSON under the ``providers/`` config directory.

    A provider profile holds what the PKCE grant needs to exchange a code:
    the client identifier, the token endpoint and the redirect URL that was
    registered for the client.

    See Also:
        :func:`~authgrant.config.load_provider`: Deserialise a provider by name.
        :func:`~authgrant.config.save_provider`: Persist a provider to disk.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    client_id: str = Field(description="OAuth2 client identifier")
    token_url: str = Field(description="Token endpoint used for the code exchange")
    redirect_url: Optional[str] = Field(
        default=None, description="Redirect URL registered for the client"
    )
    dashboard_url: str = Field(
        default=DEFAULT_DASHBOARD_URL,
        description="Template for the client's settings page, used in PKCE remediation messages",
    )
    request: RequestConfig = Field(default_factory=RequestConfig)

    @field_validator("dashboard_url")
    @classmethod
    def _check_dashboard_template(cls, value: str) -> str:
        # Only {client_id} is substituted; anything else would fail at format time.
        try:
            fields = {name for _, name, _, _ in string.Formatter().parse(value) if name is not None}
        except ValueError as exc:
            raise ValueError(f"dashboard_url is not a valid template: {exc}") from exc
        unknown = fields - {"client_id"}
        if unknown:
            raise ValueError(
                "dashboard_url may only use the {client_id} placeholder, found: "
                + ", ".join(repr(name) for name in sorted(unknown))
            )
        return value


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Format used when neither --json nor --plain is given"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/authgrant/config.json``.

    Loaded and saved by :func:`~authgrant.config.load_global_config` and
    :func:`~authgrant.config.save_global_config`.
    """

    default_provider: Optional[str] = None
    auto_select_single_provider: bool = True
    output: OutputConfig = Field(default_factory=OutputConfig)
