"""authgrant -- OAuth2 authorization-response handling for native and CLI clients.

This package turns the parameters an identity provider sends back after a
browser redirect into a :class:`~authgrant.models.Credentials` object, or a
precise, typed error. Two grants are supported:

* :class:`~authgrant.grant.ImplicitGrant` -- tokens arrive directly in the
  redirect fragment.
* :class:`~authgrant.grant.PKCEGrant` -- an authorization code arrives in the
  redirect and is exchanged for tokens with a PKCE verifier (:rfc:`7636`).

Typical workflow::

    grant = PKCEGrant.from_generator(exchanger, "myapp://callback", nonce=nonce)
    params = dict(grant.defaults)        # merge into the authorization request
    components = RedirectComponents.from_url(callback_url)
    result = await grant.credentials_from(grant.values_from_redirect(components))
    credentials = result.unwrap()

Modules:
    grant: Grant abstraction, the two grant variants, nonce validation,
        redirect parsing and PKCE challenge generation.
    exchange: Token exchange client contract and its httpx implementation.
    models: Pydantic models shared across the package.
    config: XDG-aware provider profile management.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
    app: Typer application factory and CLI entry point.
"""

__version__ = "0.1.0"
