"""Token cache keyed by provider, client and TLS settings."""

from kubeoidc.core.tokencache.key import TokenCacheKey, derive_token_cache_key
from kubeoidc.core.tokencache.repository import (
    TokenCacheError,
    TokenCacheInterface,
    TokenCacheRepository,
)

__all__ = [
    "TokenCacheError",
    "TokenCacheInterface",
    "TokenCacheKey",
    "TokenCacheRepository",
    "derive_token_cache_key",
]
