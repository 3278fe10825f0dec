"""Main CLI entry point for kubeoidc."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from kubeoidc import __version__
from kubeoidc.cli.options import build_grant_option, grant_options
from kubeoidc.ui.console import configure_logging
from kubeoidc.utils.state import default_token_cache_dir

CACHE_DIR_OPTION = click.option(
    "--token-cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=default_token_cache_dir,
    show_default="~/.kube/cache/oidc-login",
    envvar="KUBEOIDC_TOKEN_CACHE_DIR",
    help="Directory holding cached token sets",
)

TIMEOUT_OPTION = click.option(
    "--timeout",
    type=float,
    default=None,
    envvar="KUBEOIDC_TIMEOUT",
    help="Give up after this many seconds (lock wait and login included)",
)


@click.group()
@click.version_option(version=__version__, prog_name="kubeoidc")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging to stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """OpenID Connect login for kubectl."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(verbose)


@cli.command("get-token")
@click.option("--oidc-issuer-url", required=True, help="Issuer URL of the provider")
@click.option("--oidc-client-id", required=True, help="Client ID of the provider")
@click.option(
    "--oidc-client-secret",
    default="",
    envvar="KUBEOIDC_CLIENT_SECRET",
    help="Client secret of the provider",
)
@click.option(
    "--oidc-extra-scope",
    "extra_scopes",
    multiple=True,
    help="Scope to request in addition to openid (repeatable)",
)
@CACHE_DIR_OPTION
@click.option(
    "--certificate-authority",
    "ca_cert_filenames",
    multiple=True,
    help="Path to a CA certificate of the provider (repeatable)",
)
@click.option(
    "--certificate-authority-data",
    "ca_cert_data",
    multiple=True,
    help="Base64 encoded CA certificate of the provider (repeatable)",
)
@click.option(
    "--insecure-skip-tls-verify",
    is_flag=True,
    help="Do not verify the TLS certificate of the provider",
)
@grant_options
@TIMEOUT_OPTION
def get_token_cmd(
    oidc_issuer_url: str,
    oidc_client_id: str,
    oidc_client_secret: str,
    extra_scopes: tuple[str, ...],
    token_cache_dir: Path,
    ca_cert_filenames: tuple[str, ...],
    ca_cert_data: tuple[str, ...],
    insecure_skip_tls_verify: bool,
    timeout: float | None,
    **grant_flags: Any,
) -> None:
    """Print an ExecCredential for client-go.

    Use this as the exec credential plugin in a kubeconfig user.

    \b
    Example:
      kubeoidc get-token \\
        --oidc-issuer-url=https://issuer.example.com \\
        --oidc-client-id=YOUR_CLIENT_ID
    """
    from kubeoidc.cli.get_token import run_get_token
    from kubeoidc.models.oidc import Provider
    from kubeoidc.models.tls import TLSClientConfig

    run_get_token(
        provider=Provider(
            issuer_url=oidc_issuer_url,
            client_id=oidc_client_id,
            client_secret=oidc_client_secret,
            extra_scopes=extra_scopes,
        ),
        grant_option=build_grant_option(**grant_flags),
        tls_client_config=TLSClientConfig(
            ca_cert_filenames=ca_cert_filenames,
            ca_cert_data=ca_cert_data,
            skip_tls_verify=insecure_skip_tls_verify,
        ),
        token_cache_dir=token_cache_dir.expanduser(),
        timeout=timeout,
    )


@cli.command("login")
@click.option(
    "--kubeconfig",
    default="",
    help="Path to the kubeconfig file (default: $KUBECONFIG or ~/.kube/config)",
)
@click.option("--context", "context_name", default="", help="Kubeconfig context to use")
@click.option("--user", default="", help="Kubeconfig user to use")
@grant_options
@TIMEOUT_OPTION
def login_cmd(
    kubeconfig: str,
    context_name: str,
    user: str,
    timeout: float | None,
    **grant_flags: Any,
) -> None:
    """Log in and write the ID token into the kubeconfig.

    The user must have an oidc auth-provider. A still-valid token is left
    untouched.
    """
    from kubeoidc.cli.login import run_login

    run_login(
        kubeconfig=kubeconfig,
        context=context_name,
        user=user,
        grant_option=build_grant_option(**grant_flags),
        timeout=timeout,
    )


@cli.command("clean")
@CACHE_DIR_OPTION
def clean_cmd(token_cache_dir: Path) -> None:
    """Delete the token cache."""
    from kubeoidc.cli.state import run_clean

    run_clean(token_cache_dir.expanduser())


@cli.command("unlock")
@CACHE_DIR_OPTION
@click.option("--force", is_flag=True, help="Remove the lock even if its holder is alive")
def unlock_cmd(token_cache_dir: Path, force: bool) -> None:
    """Remove the get-token lock file."""
    from kubeoidc.cli.state import run_unlock

    run_unlock(token_cache_dir.expanduser(), force=force)


if __name__ == "__main__":
    cli()
