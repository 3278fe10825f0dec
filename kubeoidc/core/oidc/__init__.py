"""OpenID Connect client and ID token decoding."""

from kubeoidc.core.oidc.claims import ClaimsDecodeError, decode_id_token, decode_without_verify
from kubeoidc.core.oidc.client import OIDCClient, OIDCClientError

__all__ = [
    "ClaimsDecodeError",
    "OIDCClient",
    "OIDCClientError",
    "decode_id_token",
    "decode_without_verify",
]
