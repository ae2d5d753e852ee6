"""Provider commands -- manage identity provider profiles.

Provides the ``authgrant provider`` sub-command group. A provider profile
stores the client id, token endpoint and redirect URL the PKCE grant needs
for the code exchange, so they do not have to be repeated on every
``authgrant callback`` invocation.

Typical workflow::

    authgrant provider add tenant --client-id abc --token-url https://tenant/oauth/token
    authgrant provider use tenant
    authgrant provider list
"""

from __future__ import annotations

from typing import Optional

import typer

from authgrant.output import error, get_output, info, success, suggest


provider_app = typer.Typer(no_args_is_help=True)


@provider_app.command("add")
def provider_add(
    name: str = typer.Argument(help="Provider profile name."),
    client_id: str = typer.Option(..., "--client-id", help="OAuth2 client identifier."),
    token_url: str = typer.Option(..., "--token-url", help="Token endpoint URL."),
    redirect_url: Optional[str] = typer.Option(
        None, "--redirect-url", help="Redirect URL registered for the client."
    ),
    timeout: float = typer.Option(30.0, "--timeout", help="Token request timeout in seconds."),
    dashboard_url: Optional[str] = typer.Option(
        None,
        "--dashboard-url",
        help="Settings page template for the client; {client_id} is substituted.",
    ),
    no_verify_ssl: bool = typer.Option(
        False, "--no-verify-ssl", help="Disable TLS certificate verification."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing profile."),
) -> None:
    """Create or replace a provider profile.

    Example::

        authgrant provider add tenant --client-id abc \\
            --token-url https://tenant.example.com/oauth/token
    """
    from pydantic import ValidationError

    from authgrant.config import provider_exists, save_provider
    from authgrant.exceptions import InvalidUsageError
    from authgrant.models import ProviderConfig, RequestConfig

    if provider_exists(name) and not force:
        error(f'Provider "{name}" already exists.')
        suggest("Use --force to overwrite it.")
        raise typer.Exit(code=2)

    fields = {
        "name": name,
        "client_id": client_id,
        "token_url": token_url,
        "redirect_url": redirect_url,
        "request": RequestConfig(timeout=timeout, verify_ssl=not no_verify_ssl),
    }
    if dashboard_url is not None:
        fields["dashboard_url"] = dashboard_url
    try:
        provider = ProviderConfig(**fields)
    except ValidationError as exc:
        raise InvalidUsageError(f'Invalid provider "{name}": {exc}') from exc
    save_provider(provider)
    success(f'Provider "{name}" saved.')
    suggest(f"Make it the default: authgrant provider use {name}")


@provider_app.command("list")
def provider_list() -> None:
    """List stored provider profiles."""
    from authgrant.config import list_providers, load_global_config, load_provider

    names = list_providers()
    if not names:
        info("No providers configured.")
        suggest("Add one: authgrant provider add NAME --client-id ID --token-url URL")
        return

    providers = [load_provider(name) for name in names]
    get_output().providers(providers, default=load_global_config().default_provider)


@provider_app.command("show")
def provider_show(
    name: str = typer.Argument(help="Provider profile name."),
) -> None:
    """Show a provider profile."""
    from authgrant.config import load_provider

    get_output().provider(load_provider(name))


@provider_app.command("use")
def provider_use(
    name: str = typer.Argument(help="Provider profile name."),
) -> None:
    """Make a provider the default for grant commands."""
    from authgrant.config import load_global_config, provider_exists, save_global_config

    if not provider_exists(name):
        error(f'Provider "{name}" not found.')
        raise typer.Exit(code=2)

    config = load_global_config()
    config.default_provider = name
    save_global_config(config)
    success(f'Default provider set to "{name}".')


@provider_app.command("remove")
def provider_remove(
    name: str = typer.Argument(help="Provider profile name."),
) -> None:
    """Delete a provider profile."""
    from authgrant.config import delete_provider, load_global_config, save_global_config

    delete_provider(name)

    config = load_global_config()
    if config.default_provider == name:
        config.default_provider = None
        save_global_config(config)
    success(f'Provider "{name}" removed.')
