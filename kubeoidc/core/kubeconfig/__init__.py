"""Kubeconfig auth-provider access."""

from kubeoidc.core.kubeconfig.loader import Kubeconfig, KubeconfigError, KubeconfigInterface
from kubeoidc.core.kubeconfig.models import AuthProvider

__all__ = ["AuthProvider", "Kubeconfig", "KubeconfigError", "KubeconfigInterface"]
