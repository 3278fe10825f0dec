"""Authentication delegate and grant flows."""

from kubeoidc.core.authentication.authentication import (
    Authentication,
    AuthenticationInput,
    AuthenticationInterface,
    AuthenticationOutput,
)

__all__ = [
    "Authentication",
    "AuthenticationInput",
    "AuthenticationInterface",
    "AuthenticationOutput",
]
