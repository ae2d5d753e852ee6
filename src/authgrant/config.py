"""Provider profiles, global settings and provider resolution.

On-disk layout (XDG Base Directory on Linux/BSD, ``~/.authgrant/`` elsewhere)::

    <config dir>/config.json              GlobalConfig
    <config dir>/providers/<name>.json    one ProviderConfig per client
    <data dir>/logs/                      crash logs written by the CLI

Files are JSON validated by the Pydantic models in :mod:`authgrant.models`
and replaced atomically on save. :func:`resolve_provider` picks the provider
the grant commands use; :func:`env_client_settings` exposes the environment
overrides on their own so they also apply without any stored profile.
"""

from __future__ import annotations

import json
import os
import platform
import re
import tempfile
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError

from authgrant.exceptions import ConfigError
from authgrant.models import GlobalConfig, ProviderConfig

_APP_NAME = "authgrant"

ENV_PROVIDER = "AUTHGRANT_PROVIDER"
ENV_CLIENT_ID = "AUTHGRANT_CLIENT_ID"
ENV_TOKEN_URL = "AUTHGRANT_TOKEN_URL"

_PROVIDER_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

_ModelT = TypeVar("_ModelT", bound=BaseModel)


# --- Directories ---


def _is_xdg_platform() -> bool:
    """Return True on Linux and the BSDs."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str) -> Path:
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/authgrant`` (default ``~/.config/authgrant``), created on demand."""
    return _app_dir("XDG_CONFIG_HOME", ".config")


def get_data_dir() -> Path:
    """``$XDG_DATA_HOME/authgrant`` (default ``~/.local/share/authgrant``), created on demand."""
    return _app_dir("XDG_DATA_HOME", os.path.join(".local", "share"))


# --- JSON files ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    ) as fh:
        tmp_path = Path(fh.name)
        try:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        except BaseException:
            fh.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def _write_model(path: Path, model: BaseModel) -> None:
    _atomic_write(path, json.dumps(model.model_dump(mode="json"), indent=2) + "\n")


def _read_model(path: Path, model: type[_ModelT], what: str) -> _ModelT:
    try:
        return model.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / "config.json"


def load_global_config() -> GlobalConfig:
    """Load the global config; defaults when the file does not exist.

    Raises:
        ConfigError: If the file is not valid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    return _read_model(path, GlobalConfig, "global config")


def save_global_config(config: GlobalConfig) -> None:
    _write_model(_global_config_path(), config)


# --- Providers ---


def _provider_path(name: str) -> Path:
    # Names become file names; keep them to one plain path segment.
    if not _PROVIDER_NAME.match(name):
        raise ConfigError(
            f"Invalid provider name '{name}': use letters, digits, '.', '_' or '-'"
        )
    return get_config_dir() / "providers" / f"{name}.json"


def list_providers() -> list[str]:
    """Names of the stored provider profiles, sorted."""
    providers_dir = get_config_dir() / "providers"
    if not providers_dir.is_dir():
        return []
    return sorted(p.stem for p in providers_dir.glob("*.json") if p.is_file())


def provider_exists(name: str) -> bool:
    return _provider_path(name).is_file()


def load_provider(name: str) -> ProviderConfig:
    """Load the provider profile *name*.

    Raises:
        ConfigError: If the name is invalid, the profile does not exist, or
            its file fails validation.
    """
    path = _provider_path(name)
    if not path.is_file():
        raise ConfigError(f"Provider '{name}' not found at {path}")
    return _read_model(path, ProviderConfig, f"provider '{name}'")


def save_provider(provider: ProviderConfig) -> None:
    """Persist *provider* as ``providers/<provider.name>.json``."""
    _write_model(_provider_path(provider.name), provider)


def delete_provider(name: str) -> None:
    """Delete the provider profile *name*.

    Raises:
        ConfigError: If the profile does not exist.
    """
    path = _provider_path(name)
    if not path.is_file():
        raise ConfigError(f"Provider '{name}' not found at {path}")
    path.unlink()


# --- Resolution ---


def env_client_settings() -> dict[str, str]:
    """``client_id`` / ``token_url`` taken from the environment, when set."""
    settings: dict[str, str] = {}
    client_id = os.environ.get(ENV_CLIENT_ID)
    if client_id:
        settings["client_id"] = client_id
    token_url = os.environ.get(ENV_TOKEN_URL)
    if token_url:
        settings["token_url"] = token_url
    return settings


def resolve_provider(cli_provider: Optional[str] = None) -> Optional[ProviderConfig]:
    """Pick the provider profile for a grant command.

    The name comes from, highest first: *cli_provider*, ``AUTHGRANT_PROVIDER``,
    the global ``default_provider``, and finally the only stored profile when
    exactly one exists and ``auto_select_single_provider`` is on.
    :func:`env_client_settings` is then laid over the loaded profile.

    Returns:
        The provider, or ``None`` when no name could be chosen.

    Raises:
        ConfigError: If the chosen profile cannot be loaded.
    """
    global_cfg = load_global_config()
    name = cli_provider or os.environ.get(ENV_PROVIDER) or global_cfg.default_provider

    if name is None and global_cfg.auto_select_single_provider:
        providers = list_providers()
        if len(providers) == 1:
            name = providers[0]
    if name is None:
        return None

    provider = load_provider(name)
    overrides = env_client_settings()
    if overrides:
        provider = provider.model_copy(update=overrides)
    return provider
