"""get-token command implementation."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from kubeoidc.core.authentication import Authentication
from kubeoidc.core.context import RunContext
from kubeoidc.core.credentialplugin import CredentialPluginWriter
from kubeoidc.core.tokencache import TokenCacheRepository
from kubeoidc.core.usecases import GetToken, GetTokenInput
from kubeoidc.errors import KubeOIDCError
from kubeoidc.models.grant import GrantOption
from kubeoidc.models.oidc import Provider
from kubeoidc.models.tls import TLSClientConfig
from kubeoidc.utils.locks import FileMutex
from kubeoidc.utils.state import lock_dir_for


def run_get_token(
    *,
    provider: Provider,
    grant_option: GrantOption,
    tls_client_config: TLSClientConfig,
    token_cache_dir: Path,
    timeout: float | None,
) -> None:
    """Obtain a token and print it as an ExecCredential on stdout."""
    use_case = GetToken(
        authentication=Authentication(),
        token_cache=TokenCacheRepository(),
        writer=CredentialPluginWriter(),
        mutex=FileMutex(lock_dir_for(token_cache_dir)),
    )
    request = GetTokenInput(
        provider=provider,
        grant_option=grant_option,
        tls_client_config=tls_client_config,
        token_cache_dir=token_cache_dir,
    )
    try:
        use_case.do(RunContext(timeout=timeout), request)
    except KubeOIDCError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
