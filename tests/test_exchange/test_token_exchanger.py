"""Tests for HttpTokenExchanger using httpx.MockTransport."""

from __future__ import annotations

import json
from urllib.parse import parse_qs

import httpx
import pytest

from pydantic import ValidationError

from authgrant.exceptions import AuthenticationError, PKCENotAllowedError
from authgrant.exchange import DEFAULT_DASHBOARD_URL, HttpTokenExchanger
from authgrant.grant import PKCEGrant
from authgrant.models import ProviderConfig, RequestConfig

TOKEN_URL = "https://tenant.example.com/oauth/token"


def _exchanger(handler, **kwargs) -> HttpTokenExchanger:
    return HttpTokenExchanger(
        TOKEN_URL,
        "client-abc",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------


class TestRequest:
    async def test_posts_form_encoded_code_exchange(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"access_token": "at"})

        await _exchanger(handler).exchange("auth-code", "the-verifier", "myapp://callback")

        request = captured[0]
        assert request.method == "POST"
        assert str(request.url) == TOKEN_URL
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert request.headers["accept"] == "application/json"
        assert _form(request) == {
            "grant_type": "authorization_code",
            "client_id": "client-abc",
            "code": "auth-code",
            "code_verifier": "the-verifier",
            "redirect_uri": "myapp://callback",
        }


# ---------------------------------------------------------------------------
# Successful exchange
# ---------------------------------------------------------------------------


class TestSuccess:
    async def test_token_response(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "access_token": "at",
                    "refresh_token": "rt",
                    "id_token": "idt",
                    "token_type": "Bearer",
                    "expires_in": 86400,
                    "scope": "openid offline_access",
                },
            )

        result = await _exchanger(handler).exchange("c", "v", "myapp://cb")

        credentials = result.unwrap()
        assert credentials.access_token == "at"
        assert credentials.refresh_token == "rt"
        assert credentials.id_token == "idt"
        assert credentials.expires_in == 86400
        assert credentials.scope == "openid offline_access"

    async def test_extra_keys_preserved(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"access_token": "at", "custom": "x"})

        credentials = (await _exchanger(handler).exchange("c", "v", "r")).unwrap()
        assert credentials.model_extra == {"custom": "x"}


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailure:
    async def test_bare_401_is_unauthorized(self) -> None:
        result = await _exchanger(lambda request: httpx.Response(401)).exchange("c", "v", "r")

        error = result.error
        assert isinstance(error, AuthenticationError)
        assert error.description == "Unauthorized"
        assert error.status_code == 401
        assert error.is_unauthorized

    async def test_oauth_error_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                403,
                json={"error": "invalid_grant", "error_description": "Invalid authorization code"},
            )

        error = (await _exchanger(handler).exchange("c", "v", "r")).error
        assert isinstance(error, AuthenticationError)
        assert error.code == "invalid_grant"
        assert error.description == "Invalid authorization code"
        assert error.raw == {
            "error": "invalid_grant",
            "error_description": "Invalid authorization code",
        }
        assert not error.is_unauthorized

    async def test_unauthorized_client_code(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                401,
                json={"error": "unauthorized_client", "error_description": "Grant type not allowed"},
            )

        error = (await _exchanger(handler).exchange("c", "v", "r")).error
        assert error.is_unauthorized

    async def test_error_body_not_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="<html>oops</html>")

        error = (await _exchanger(handler).exchange("c", "v", "r")).error
        assert error.description == "Internal Server Error"
        assert error.status_code == 500
        assert error.raw == {}

    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        error = (await _exchanger(handler).exchange("c", "v", "r")).error
        assert isinstance(error, AuthenticationError)
        assert error.code == "network_error"
        assert "connection refused" in error.description

    @pytest.mark.parametrize("body", ["[1, 2]", "not json", '"text"'])
    async def test_success_body_not_an_object(self, body: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=body)

        error = (await _exchanger(handler).exchange("c", "v", "r")).error
        assert error.code == "invalid_response"
        assert error.status_code == 200

    async def test_success_body_with_wrong_types(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"access_token": {"nested": True}})

        error = (await _exchanger(handler).exchange("c", "v", "r")).error
        assert error.code == "invalid_response"
        assert error.raw == {"access_token": {"nested": True}}

    async def test_verifier_not_in_error(self) -> None:
        result = await _exchanger(lambda request: httpx.Response(400)).exchange(
            "c", "the-verifier", "r"
        )
        assert "the-verifier" not in str(result.error)
        assert "the-verifier" not in json.dumps(result.error.raw)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_settings_url_from_default_template(self) -> None:
        exchanger = HttpTokenExchanger(TOKEN_URL, "abc123")
        assert exchanger.settings_url == DEFAULT_DASHBOARD_URL.format(client_id="abc123")
        assert exchanger.settings_url == "https://manage.auth0.com/#/applications/abc123/settings"

    def test_settings_url_disabled(self) -> None:
        assert HttpTokenExchanger(TOKEN_URL, "abc123", dashboard_url=None).settings_url is None

    def test_from_provider(self) -> None:
        provider = ProviderConfig(
            name="prod",
            client_id="abc123",
            token_url=TOKEN_URL,
            dashboard_url="https://idp.example.com/clients/{client_id}",
            request=RequestConfig(timeout=5.0, verify_ssl=False),
        )
        exchanger = HttpTokenExchanger.from_provider(provider)
        assert exchanger.client_id == "abc123"
        assert exchanger.token_url == TOKEN_URL
        assert exchanger.settings_url == "https://idp.example.com/clients/abc123"

    def test_repr(self) -> None:
        assert repr(HttpTokenExchanger(TOKEN_URL, "abc123")) == (
            f"HttpTokenExchanger(token_url={TOKEN_URL!r}, client_id='abc123')"
        )


# ---------------------------------------------------------------------------
# Dashboard URL templates
# ---------------------------------------------------------------------------


class TestDashboardTemplate:
    @pytest.mark.parametrize(
        "template",
        ["https://dash.example/apps/{app_id}", "https://dash.example/{", "https://dash.example/{0}"],
    )
    def test_unusable_template_yields_no_settings_url(self, template: str) -> None:
        assert HttpTokenExchanger(TOKEN_URL, "abc123", dashboard_url=template).settings_url is None

    async def test_unusable_template_still_returns_pkce_guidance(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error_description": "Unauthorized"})

        exchanger = _exchanger(handler, dashboard_url="https://dash.example/apps/{app_id}")
        grant = PKCEGrant(exchanger, "app://cb", "v", "c", "S256")

        result = await grant.credentials_from({"code": "x"})

        assert isinstance(result.error, PKCENotAllowedError)
        message = str(result.error)
        assert "client-abc" in message
        assert "in the client's settings" in message

    @pytest.mark.parametrize(
        "template",
        ["https://dash.example/apps/{app_id}", "https://dash.example/{", "https://dash.example/{}"],
    )
    def test_provider_rejects_unusable_template(self, template: str) -> None:
        with pytest.raises(ValidationError, match="dashboard_url"):
            ProviderConfig(name="p", client_id="c", token_url=TOKEN_URL, dashboard_url=template)

    def test_provider_accepts_client_id_template(self) -> None:
        provider = ProviderConfig(
            name="p",
            client_id="c",
            token_url=TOKEN_URL,
            dashboard_url="https://dash.example/clients/{client_id}/settings",
        )
        assert HttpTokenExchanger.from_provider(provider).settings_url == (
            "https://dash.example/clients/c/settings"
        )
