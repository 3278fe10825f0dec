"""Authentication delegate: reuse, refresh or run a grant flow."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from kubeoidc.core.authentication.authcode import AuthCodeBrowser
from kubeoidc.core.authentication.devicecode import DeviceCode
from kubeoidc.core.authentication.ropc import ROPC
from kubeoidc.core.context import RunContext
from kubeoidc.core.oidc.claims import ClaimsDecodeError, decode_without_verify
from kubeoidc.core.oidc.client import OIDCClient, OIDCClientError
from kubeoidc.models.grant import (
    AuthCodeBrowserOption,
    ClientCredentialsOption,
    DeviceCodeOption,
    GrantOption,
    ROPCOption,
)
from kubeoidc.models.oidc import Provider, TokenSet
from kubeoidc.models.tls import TLSClientConfig

logger = logging.getLogger(__name__)


class AuthenticationInput(BaseModel):
    """What the delegate needs to produce a token set."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    grant_option: GrantOption = Field(default_factory=AuthCodeBrowserOption)
    tls_client_config: TLSClientConfig = Field(default_factory=TLSClientConfig)
    cached_token_set: TokenSet | None = None


class AuthenticationOutput(BaseModel):
    """Token set plus whether it is the candidate reused as-is."""

    model_config = ConfigDict(frozen=True)

    already_has_valid_id_token: bool = False
    token_set: TokenSet


class AuthenticationInterface(Protocol):
    def do(self, ctx: RunContext, request: AuthenticationInput) -> AuthenticationOutput: ...


ClientFactory = Callable[[Provider, TLSClientConfig], OIDCClient]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Authentication:
    """Returns a valid token set for a provider.

    A still-valid cached ID token is returned as-is. Otherwise the refresh
    token is tried, and when that is missing or rejected the selected grant
    flow runs.
    """

    def __init__(
        self,
        *,
        client_factory: ClientFactory = OIDCClient,
        auth_code_browser: AuthCodeBrowser | None = None,
        device_code: DeviceCode | None = None,
        ropc: ROPC | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client_factory = client_factory
        self._auth_code_browser = auth_code_browser or AuthCodeBrowser()
        self._device_code = device_code or DeviceCode()
        self._ropc = ropc or ROPC()
        self._clock = clock

    def do(self, ctx: RunContext, request: AuthenticationInput) -> AuthenticationOutput:
        cached = request.cached_token_set
        if cached is not None:
            try:
                claims = decode_without_verify(cached)
            except ClaimsDecodeError as exc:
                logger.debug("ignoring the cached token: %s", exc)
            else:
                if not claims.is_expired(self._clock()):
                    logger.debug("you already have a valid token until %s", claims.expiry)
                    return AuthenticationOutput(already_has_valid_id_token=True, token_set=cached)
                logger.debug("you have an expired token at %s", claims.expiry)

        ctx.check()
        with self._client_factory(request.provider, request.tls_client_config) as client:
            if cached is not None and cached.refresh_token:
                logger.debug("refreshing the token")
                try:
                    token_set = client.refresh(cached.refresh_token)
                except OIDCClientError as exc:
                    logger.debug("could not refresh the token: %s", exc)
                else:
                    logger.debug("you got a token set by the refresh token")
                    return AuthenticationOutput(token_set=token_set)

            token_set = self._grant(ctx, request.grant_option, client)
        return AuthenticationOutput(token_set=token_set)

    def _grant(self, ctx: RunContext, option: GrantOption, client: OIDCClient) -> TokenSet:
        if isinstance(option, AuthCodeBrowserOption):
            logger.debug("performing the authorization code flow")
            return self._auth_code_browser.do(ctx, option, client)
        if isinstance(option, DeviceCodeOption):
            logger.debug("performing the device authorization flow")
            return self._device_code.do(ctx, option, client)
        if isinstance(option, ROPCOption):
            logger.debug("performing the resource owner password credentials flow")
            return self._ropc.do(option, client)
        if isinstance(option, ClientCredentialsOption):
            logger.debug("performing the client credentials flow")
            return client.get_token_by_client_credentials()
        raise ValueError(f"unsupported grant option: {option!r}")
