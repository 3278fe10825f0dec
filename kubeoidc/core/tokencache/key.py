"""Token cache key derivation."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from kubeoidc.models.grant import GrantOption, ROPCOption
from kubeoidc.models.oidc import Provider
from kubeoidc.models.tls import TLSClientConfig
from kubeoidc.utils.canonical import canonical_digest


class TokenCacheKey(BaseModel):
    """Identity of a cacheable token set.

    List-valued inputs are stored in canonical (sorted) form, so two requests
    that assemble the same scopes or CA certificates in a different order map
    to the same key.
    """

    model_config = ConfigDict(frozen=True)

    issuer_url: str
    client_id: str
    client_secret: str = ""
    username: str = ""
    extra_scopes: tuple[str, ...] = ()
    ca_cert_filename: str = ""
    ca_cert_data: str = ""
    skip_tls_verify: bool = False

    def digest(self) -> str:
        """Return a stable hex digest, used as the cache file name."""
        return canonical_digest(self.model_dump(mode="json"))


def _join_sorted(items: Iterable[str]) -> str:
    return ",".join(sorted(items))


def derive_token_cache_key(
    provider: Provider,
    grant_option: GrantOption,
    tls_client_config: TLSClientConfig,
) -> TokenCacheKey:
    """Build the cache key for a request.

    The username is part of the key only for the password grant, where two
    users of the same client hold different tokens.
    """
    username = grant_option.username if isinstance(grant_option, ROPCOption) else ""
    return TokenCacheKey(
        issuer_url=provider.issuer_url,
        client_id=provider.client_id,
        client_secret=provider.client_secret,
        username=username,
        extra_scopes=tuple(sorted(provider.extra_scopes)),
        ca_cert_filename=_join_sorted(tls_client_config.ca_cert_filenames),
        ca_cert_data=_join_sorted(tls_client_config.ca_cert_data),
        skip_tls_verify=tls_client_config.skip_tls_verify,
    )
