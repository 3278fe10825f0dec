"""Tests for the browser authorization code flow."""

from __future__ import annotations

from unittest.mock import MagicMock, create_autospec
from urllib.parse import parse_qs, urlencode, urlparse

import httpx
import pytest

from kubeoidc.core.authentication.authcode import (
    AuthCodeBrowser,
    AuthCodeError,
    code_challenge_s256,
)
from kubeoidc.core.context import OperationCancelled
from kubeoidc.core.oidc.client import OIDCClient
from kubeoidc.models import AuthCodeBrowserOption, TokenSet
from tests.helpers import NoWaitContext

OPTION = AuthCodeBrowserOption(
    bind_addresses=("127.0.0.1:0",),
    redirect_url_hostname="127.0.0.1",
    authentication_timeout=10,
)


def _client() -> MagicMock:
    client = create_autospec(OIDCClient, instance=True)

    def authorization_url(**params: str) -> str:
        return "https://issuer.example.com/auth?" + urlencode(params)

    client.authorization_url.side_effect = authorization_url
    client.exchange_code.return_value = TokenSet(id_token="ID", refresh_token="REFRESH")
    return client


def _browser(**extra: str) -> tuple[AuthCodeBrowser, list[httpx.Response]]:
    """A browser that follows the authorization URL straight to the redirect."""
    responses: list[httpx.Response] = []

    def open_browser(url: str) -> bool:
        params = {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}
        query = {"code": "YOUR_AUTH_CODE", "state": params["state"], **extra}
        responses.append(httpx.get(params["redirect_uri"], params=query, trust_env=False))
        return True

    return AuthCodeBrowser(open_browser=open_browser), responses


def test_code_is_exchanged_with_pkce_verifier() -> None:
    client = _client()
    browser, responses = _browser()

    token_set = browser.do(NoWaitContext(), OPTION, client)

    assert token_set == TokenSet(id_token="ID", refresh_token="REFRESH")
    assert responses[0].status_code == 200
    auth_params = client.authorization_url.call_args.kwargs
    exchange = client.exchange_code.call_args.kwargs
    assert exchange["code"] == "YOUR_AUTH_CODE"
    assert exchange["redirect_uri"] == auth_params["redirect_uri"]
    assert auth_params["redirect_uri"].startswith("http://127.0.0.1:")
    assert code_challenge_s256(exchange["code_verifier"]) == auth_params["code_challenge"]


def test_state_mismatch_is_rejected() -> None:
    client = _client()
    browser, responses = _browser(state="forged")

    with pytest.raises(AuthCodeError, match="state does not match"):
        browser.do(NoWaitContext(), OPTION, client)

    assert responses[0].status_code == 400
    client.exchange_code.assert_not_called()


def test_provider_error_is_reported() -> None:
    client = _client()
    browser, _ = _browser(error="access_denied", error_description="user cancelled")

    with pytest.raises(AuthCodeError, match="access_denied: user cancelled"):
        browser.do(NoWaitContext(), OPTION, client)


def test_provider_error_with_forged_state_is_rejected() -> None:
    client = _client()
    browser, responses = _browser(state="forged", error="access_denied")

    with pytest.raises(AuthCodeError, match="state does not match"):
        browser.do(NoWaitContext(), OPTION, client)

    assert responses[0].status_code == 400
    client.exchange_code.assert_not_called()


def test_cancel_while_waiting() -> None:
    client = _client()
    ctx = NoWaitContext()

    def open_browser(url: str) -> bool:
        ctx.cancel()
        return True

    with pytest.raises(OperationCancelled):
        AuthCodeBrowser(open_browser=open_browser).do(ctx, OPTION, client)
    client.exchange_code.assert_not_called()


def test_times_out_without_redirect() -> None:
    client = _client()
    option = OPTION.model_copy(update={"authentication_timeout": 0, "skip_open_browser": True})

    with pytest.raises(OperationCancelled, match="no authorization response"):
        AuthCodeBrowser(open_browser=lambda url: True).do(NoWaitContext(), option, client)


def test_invalid_bind_address() -> None:
    option = OPTION.model_copy(update={"bind_addresses": ("nohost",)})
    with pytest.raises(AuthCodeError, match="invalid bind address"):
        AuthCodeBrowser().do(NoWaitContext(), option, _client())
