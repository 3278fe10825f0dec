"""Log in and write the token into the kubeconfig.

The current kubeconfig user must have an ``oidc`` auth-provider. Its ID
token is reused while valid; otherwise a fresh token set is obtained and
written back to the file the user is defined in.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from kubeoidc.core.authentication import AuthenticationInput, AuthenticationInterface
from kubeoidc.core.context import RunContext
from kubeoidc.core.kubeconfig import KubeconfigError, KubeconfigInterface
from kubeoidc.core.oidc.claims import ClaimsDecodeError, decode_without_verify
from kubeoidc.errors import (
    AuthenticationError,
    ConfigReadError,
    ConfigWriteError,
    TokenDecodeError,
)
from kubeoidc.models.grant import AuthCodeBrowserOption, GrantOption

logger = logging.getLogger(__name__)


class StandaloneInput(BaseModel):
    """Parameters of one login invocation. Empty strings mean "default"."""

    model_config = ConfigDict(frozen=True)

    kubeconfig_filename: str = ""
    kubeconfig_context: str = ""
    kubeconfig_user: str = ""
    grant_option: GrantOption = Field(default_factory=AuthCodeBrowserOption)


class Standalone:
    """Refresh the ID token held in a kubeconfig auth-provider."""

    def __init__(
        self,
        *,
        authentication: AuthenticationInterface,
        kubeconfig: KubeconfigInterface,
    ) -> None:
        self.authentication = authentication
        self.kubeconfig = kubeconfig

    def do(self, ctx: RunContext, request: StandaloneInput) -> None:
        logger.debug("WARNING: log may contain your secrets such as token or password")

        try:
            auth_provider = self.kubeconfig.get_current_auth_provider(
                request.kubeconfig_filename,
                request.kubeconfig_context,
                request.kubeconfig_user,
            )
        except KubeconfigError as exc:
            raise ConfigReadError(
                f"could not find the current authentication provider: {exc}"
            ) from exc
        logger.debug("using the authentication provider of the user %s", auth_provider.user_name)
        logger.debug("a token will be written to %s", auth_provider.location_of_origin)

        try:
            result = self.authentication.do(
                ctx,
                AuthenticationInput(
                    provider=auth_provider.provider(),
                    grant_option=request.grant_option,
                    tls_client_config=auth_provider.tls_client_config(),
                    cached_token_set=auth_provider.token_set(),
                ),
            )
        except Exception as exc:
            raise AuthenticationError(f"authentication error: {exc}") from exc

        try:
            claims = decode_without_verify(result.token_set)
        except ClaimsDecodeError as exc:
            raise TokenDecodeError(f"you got an invalid token: {exc}") from exc
        logger.debug("you got a token: %s", claims.pretty)

        if result.already_has_valid_id_token:
            logger.debug("you already have a valid token until %s", claims.expiry)
            return

        logger.debug("you got a valid token until %s", claims.expiry)
        updated = auth_provider.with_token_set(result.token_set)
        try:
            self.kubeconfig.update_auth_provider(updated)
        except KubeconfigError as exc:
            raise ConfigWriteError(f"could not update the kubeconfig: {exc}") from exc
