"""Pydantic data models for kubeoidc."""

from kubeoidc.models.grant import (
    AuthCodeBrowserOption,
    ClientCredentialsOption,
    DeviceCodeOption,
    GrantKind,
    GrantOption,
    ROPCOption,
)
from kubeoidc.models.oidc import IDTokenClaims, Provider, TokenSet
from kubeoidc.models.tls import TLSClientConfig

__all__ = [
    # OIDC
    "Provider",
    "TokenSet",
    "IDTokenClaims",
    # Grant
    "GrantKind",
    "GrantOption",
    "AuthCodeBrowserOption",
    "DeviceCodeOption",
    "ROPCOption",
    "ClientCredentialsOption",
    # TLS
    "TLSClientConfig",
]
