"""login command implementation."""

from __future__ import annotations

import sys

import click

from kubeoidc.core.authentication import Authentication
from kubeoidc.core.context import RunContext
from kubeoidc.core.kubeconfig import Kubeconfig
from kubeoidc.core.usecases import Standalone, StandaloneInput
from kubeoidc.errors import KubeOIDCError
from kubeoidc.models.grant import GrantOption


def run_login(
    *,
    kubeconfig: str,
    context: str,
    user: str,
    grant_option: GrantOption,
    timeout: float | None,
) -> None:
    """Refresh the ID token of the current kubeconfig user."""
    use_case = Standalone(authentication=Authentication(), kubeconfig=Kubeconfig())
    request = StandaloneInput(
        kubeconfig_filename=kubeconfig,
        kubeconfig_context=context,
        kubeconfig_user=user,
        grant_option=grant_option,
    )
    try:
        use_case.do(RunContext(timeout=timeout), request)
    except KubeOIDCError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
