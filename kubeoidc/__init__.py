"""kubeoidc - OpenID Connect credential helper for kubectl."""

__version__ = "0.4.0"
