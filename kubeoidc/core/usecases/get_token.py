"""Get a token for client-go, backed by the token cache.

This is the credential plugin mode: kubectl runs ``kubeoidc get-token`` and
reads an ExecCredential from stdout. kubectl may start several of these
processes at once, so the cache lookup, authentication and cache write run
under a cross-process lock.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from kubeoidc.core.authentication import (
    AuthenticationInput,
    AuthenticationInterface,
)
from kubeoidc.core.context import RunContext
from kubeoidc.core.credentialplugin import CredentialOutput, CredentialPluginWriterInterface
from kubeoidc.core.oidc.claims import ClaimsDecodeError, decode_without_verify
from kubeoidc.core.tokencache import (
    TokenCacheError,
    TokenCacheInterface,
    derive_token_cache_key,
)
from kubeoidc.errors import (
    AuthenticationError,
    CacheWriteError,
    CredentialWriteError,
    LockAcquireError,
    TokenDecodeError,
)
from kubeoidc.models.grant import AuthCodeBrowserOption, GrantOption
from kubeoidc.models.oidc import IDTokenClaims, Provider, TokenSet
from kubeoidc.models.tls import TLSClientConfig
from kubeoidc.utils.locks import LockError, LockHandle, MutexInterface

logger = logging.getLogger(__name__)

# Every get-token process contends for this one name.
LOCK_NAME = "get-token"


class GetTokenInput(BaseModel):
    """Parameters of one get-token invocation."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    grant_option: GrantOption = Field(default_factory=AuthCodeBrowserOption)
    tls_client_config: TLSClientConfig = Field(default_factory=TLSClientConfig)
    token_cache_dir: Path


class GetToken:
    """Acquire-or-refresh a token and write it as an exec credential."""

    def __init__(
        self,
        *,
        authentication: AuthenticationInterface,
        token_cache: TokenCacheInterface,
        writer: CredentialPluginWriterInterface,
        mutex: MutexInterface,
    ) -> None:
        self.authentication = authentication
        self.token_cache = token_cache
        self.writer = writer
        self.mutex = mutex

    def do(self, ctx: RunContext, request: GetTokenInput) -> None:
        logger.debug("WARNING: log may contain your secrets such as token or password")

        try:
            lock = self.mutex.acquire(ctx, LOCK_NAME)
        except LockError as exc:
            raise LockAcquireError(f"could not acquire the lock: {exc}") from exc
        try:
            token_set, claims = self._acquire(ctx, request)
        finally:
            self._release(lock)

        logger.debug("writing the token to client-go")
        output = CredentialOutput(token=token_set.id_token, expiry=claims.expiry)
        try:
            self.writer.write(output)
        except Exception as exc:
            raise CredentialWriteError(f"could not write the token to client-go: {exc}") from exc

    def _acquire(
        self, ctx: RunContext, request: GetTokenInput
    ) -> tuple[TokenSet, IDTokenClaims]:
        """Cache lookup, authentication and cache write. Runs under the lock."""
        logger.debug("finding a token from cache directory %s", request.token_cache_dir)
        key = derive_token_cache_key(
            request.provider, request.grant_option, request.tls_client_config
        )
        cached_token_set: TokenSet | None = None
        try:
            cached_token_set = self.token_cache.find_by_key(request.token_cache_dir, key)
        except TokenCacheError as exc:
            logger.debug("could not find a token cache: %s", exc)

        try:
            result = self.authentication.do(
                ctx,
                AuthenticationInput(
                    provider=request.provider,
                    grant_option=request.grant_option,
                    tls_client_config=request.tls_client_config,
                    cached_token_set=cached_token_set,
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
            return result.token_set, claims

        logger.debug("you got a valid token until %s", claims.expiry)
        try:
            self.token_cache.save(request.token_cache_dir, key, result.token_set)
        except TokenCacheError as exc:
            raise CacheWriteError(f"could not write the token cache: {exc}") from exc
        return result.token_set, claims

    def _release(self, lock: LockHandle) -> None:
        try:
            self.mutex.release(lock)
        except (LockError, OSError) as exc:
            logger.warning("could not release the lock %s: %s", lock.name, exc)
