"""Grant commands -- run the grants against a captured callback URL.

Provides the ``challenge``, ``defaults`` and ``callback`` commands. They are
developer tools for checking what an identity provider sends back: paste the
URL the browser was redirected to and see the credentials, or the precise
reason they were rejected.

Typical workflow::

    authgrant challenge                      # note the verifier
    authgrant defaults --grant pkce --verifier V --nonce N
    # ... authorize in the browser, copy the callback URL ...
    authgrant callback "myapp://callback?code=..." --grant pkce --verifier V
"""

from __future__ import annotations

import asyncio
import enum
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

import typer

from authgrant.exceptions import InvalidUsageError
from authgrant.exchange import HttpTokenExchanger
from authgrant.grant import (
    ChallengeGenerator,
    ImplicitGrant,
    OAuth2Grant,
    PKCEGrant,
    RedirectComponents,
    pkce_defaults,
)
from authgrant.models import ResponseType
from authgrant.output import debug, get_output, success, suggest


class GrantKind(str, enum.Enum):
    IMPLICIT = "implicit"
    PKCE = "pkce"


_DEFAULT_RESPONSE_TYPES = {
    GrantKind.IMPLICIT: [ResponseType.TOKEN],
    GrantKind.PKCE: [ResponseType.CODE],
}


def _strip_parameters(url: str) -> str:
    """Return *url* without its query and fragment."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _build_exchanger(
    provider_name: Optional[str],
    client_id: Optional[str],
    token_url: Optional[str],
) -> tuple[HttpTokenExchanger, Optional[str]]:
    """Resolve the token exchanger and the provider's registered redirect URL.

    ``--client-id`` / ``--token-url`` win over everything else. Without a
    provider profile, ``AUTHGRANT_CLIENT_ID`` / ``AUTHGRANT_TOKEN_URL`` fill
    in whichever option is missing.

    Raises:
        InvalidUsageError: If no client id or token URL can be determined.
    """
    from authgrant.config import env_client_settings, resolve_provider

    explicit: dict[str, str] = {}
    if client_id:
        explicit["client_id"] = client_id
    if token_url:
        explicit["token_url"] = token_url

    provider = None
    if provider_name is not None or len(explicit) < 2:
        provider = resolve_provider(provider_name)

    if provider is not None:
        if explicit:
            provider = provider.model_copy(update=explicit)
        debug(f"Using provider: {provider.name}")
        return HttpTokenExchanger.from_provider(provider), provider.redirect_url

    settings = {**env_client_settings(), **explicit}
    if "client_id" not in settings or "token_url" not in settings:
        raise InvalidUsageError(
            "The PKCE grant needs a client id and token URL: pass --provider, "
            "--client-id and --token-url, or set AUTHGRANT_CLIENT_ID and AUTHGRANT_TOKEN_URL"
        )
    return HttpTokenExchanger(token_url=settings["token_url"], client_id=settings["client_id"]), None


def _build_grant(
    grant: GrantKind,
    response_types: Optional[list[ResponseType]],
    nonce: Optional[str],
    verifier: Optional[str],
    provider_name: Optional[str],
    client_id: Optional[str],
    token_url: Optional[str],
    redirect_url: Optional[str],
    callback_url: str,
) -> OAuth2Grant:
    response_type = response_types or _DEFAULT_RESPONSE_TYPES[grant]

    if grant == GrantKind.IMPLICIT:
        return ImplicitGrant(response_type=response_type, nonce=nonce)

    if not verifier:
        raise InvalidUsageError(
            "The PKCE grant needs the verifier used for the authorization request "
            "(--verifier or AUTHGRANT_VERIFIER); generate one with 'authgrant challenge'"
        )

    exchanger, registered_redirect = _build_exchanger(provider_name, client_id, token_url)
    resolved_redirect = redirect_url or registered_redirect or _strip_parameters(callback_url)

    return PKCEGrant.from_generator(
        exchanger,
        resolved_redirect,
        generator=ChallengeGenerator.from_verifier(verifier),
        response_type=response_type,
        nonce=nonce,
    )


# --------------------------------------------------------------------------- #
# Shared options
# --------------------------------------------------------------------------- #

_GRANT_OPTION = typer.Option(GrantKind.PKCE, "--grant", "-g", help="Grant type.")
_RESPONSE_TYPE_OPTION = typer.Option(
    None,
    "--response-type",
    "-r",
    help="Requested response type (repeatable). Defaults to 'token' for implicit, 'code' for pkce.",
)
_NONCE_OPTION = typer.Option(None, "--nonce", help="Nonce sent with the authorization request.")
_VERIFIER_OPTION = typer.Option(
    None,
    "--verifier",
    envvar="AUTHGRANT_VERIFIER",
    help="PKCE code verifier used for the authorization request.",
)
_PROVIDER_OPTION = typer.Option(None, "--provider", "-p", help="Provider profile name.")
_CLIENT_ID_OPTION = typer.Option(None, "--client-id", help="OAuth2 client identifier.")
_TOKEN_URL_OPTION = typer.Option(None, "--token-url", help="Token endpoint URL.")
_REDIRECT_URL_OPTION = typer.Option(
    None, "--redirect-url", help="Redirect URL used in the authorization request."
)


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


def challenge_command(
    length: int = typer.Option(
        32, "--length", min=32, max=96, help="Random bytes in the verifier."
    ),
) -> None:
    """Generate a PKCE code verifier and its S256 challenge."""
    get_output().challenge(ChallengeGenerator.generate(length))


def defaults_command(
    grant: GrantKind = _GRANT_OPTION,
    nonce: Optional[str] = _NONCE_OPTION,
    verifier: Optional[str] = _VERIFIER_OPTION,
) -> None:
    """Print the extra parameters the grant adds to the authorization request.

    For ``--grant pkce`` without ``--verifier`` a new verifier is generated
    and printed with the parameters, since the callback step needs it.
    """
    if grant == GrantKind.IMPLICIT:
        get_output().request_parameters(ImplicitGrant(nonce=nonce).defaults)
        return

    if verifier:
        generator = ChallengeGenerator.from_verifier(verifier)
        get_output().request_parameters(pkce_defaults(generator.challenge, generator.method, nonce))
        return

    generator = ChallengeGenerator.generate()
    get_output().request_parameters(
        pkce_defaults(generator.challenge, generator.method, nonce),
        generated_verifier=generator.verifier,
    )
    suggest("Pass the verifier to 'authgrant callback --verifier' once the provider redirects.")


def callback_command(
    callback_url: str = typer.Argument(help="The URL the provider redirected to."),
    grant: GrantKind = _GRANT_OPTION,
    response_type: Optional[list[ResponseType]] = _RESPONSE_TYPE_OPTION,
    nonce: Optional[str] = _NONCE_OPTION,
    verifier: Optional[str] = _VERIFIER_OPTION,
    provider: Optional[str] = _PROVIDER_OPTION,
    client_id: Optional[str] = _CLIENT_ID_OPTION,
    token_url: Optional[str] = _TOKEN_URL_OPTION,
    redirect_url: Optional[str] = _REDIRECT_URL_OPTION,
) -> None:
    """Validate a callback URL and print the resulting credentials.

    Exits with code 3 when the provider's response is rejected.
    """
    built = _build_grant(
        grant,
        response_type,
        nonce,
        verifier,
        provider,
        client_id,
        token_url,
        redirect_url,
        callback_url=callback_url,
    )
    debug(f"Handling callback with {built!r}")

    values = built.values_from_redirect(RedirectComponents.from_url(callback_url))
    result = asyncio.run(built.credentials_from(values))
    credentials = result.unwrap()

    success("Authorization response accepted.")
    get_output().credentials(credentials)
