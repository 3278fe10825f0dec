"""Exec credential writer for client-go."""

from kubeoidc.core.credentialplugin.writer import (
    CredentialOutput,
    CredentialPluginWriter,
    CredentialPluginWriterInterface,
)

__all__ = ["CredentialOutput", "CredentialPluginWriter", "CredentialPluginWriterInterface"]
