"""Shared test fixtures for authgrant.

Provides reusable fixtures for building ID tokens, fake token exchangers,
isolated config environments and output state. These fixtures are
automatically discovered by pytest and available to all test modules.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import jwt
import pytest

from authgrant.exchange import TokenExchanger
from authgrant.grant import GrantResult
from authgrant.models import Credentials
from authgrant.output import OutputFormat, OutputManager, reset_output, set_output

_SIGNING_KEY = "authgrant-test-signing-key-0123456789abcdef"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    CliRunner swaps sys.stdout/sys.stderr during a test; a manager created
    then would keep references to closed streams.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_id_token() -> Callable[..., str]:
    """Factory that builds an HS256-signed ID token with the given claims."""

    def _make(**claims: Any) -> str:
        payload: dict[str, Any] = {"sub": "auth0|user-1", "iss": "https://tenant.example.com/"}
        payload.update(claims)
        return jwt.encode(payload, _SIGNING_KEY, algorithm="HS256")

    return _make


class FakeExchanger(TokenExchanger):
    """Records exchange calls and returns a preset result."""

    def __init__(
        self,
        result: Optional[GrantResult] = None,
        client_id: str = "client-abc",
        settings_url: Optional[str] = None,
        raises: Optional[Exception] = None,
    ) -> None:
        self.result = result or GrantResult.success(
            Credentials.from_values({"access_token": "exchanged-token", "token_type": "Bearer"})
        )
        self._client_id = client_id
        self._settings_url = settings_url
        self.raises = raises
        self.calls: list[tuple[str, str, str]] = []

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def settings_url(self) -> Optional[str]:
        return self._settings_url

    async def exchange(self, code: str, verifier: str, redirect_uri: str) -> GrantResult:
        self.calls.append((code, verifier, redirect_uri))
        if self.raises is not None:
            raise self.raises
        return self.result


@pytest.fixture
def fake_exchanger() -> Callable[..., FakeExchanger]:
    """Factory for :class:`FakeExchanger` instances."""
    return FakeExchanger


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path,
    forces XDG path resolution and clears all AUTHGRANT_* environment
    variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("authgrant.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "AUTHGRANT_PROVIDER",
        "AUTHGRANT_CLIENT_ID",
        "AUTHGRANT_TOKEN_URL",
        "AUTHGRANT_VERIFIER",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
