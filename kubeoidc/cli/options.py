"""Grant options shared by ``get-token`` and ``login``."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

from kubeoidc.models.grant import (
    DEFAULT_AUTHENTICATION_TIMEOUT,
    DEFAULT_BIND_ADDRESSES,
    AuthCodeBrowserOption,
    ClientCredentialsOption,
    DeviceCodeOption,
    GrantKind,
    GrantOption,
    ROPCOption,
)

F = TypeVar("F", bound=Callable[..., Any])

GRANT_TYPE_AUTO = "auto"
GRANT_TYPE_CHOICES = [GRANT_TYPE_AUTO, *(kind.value for kind in GrantKind)]


def grant_options(func: F) -> F:
    """Attach the grant selection options to a command."""
    decorators = [
        click.option(
            "--grant-type",
            type=click.Choice(GRANT_TYPE_CHOICES),
            default=GRANT_TYPE_AUTO,
            show_default=True,
            envvar="KUBEOIDC_GRANT_TYPE",
            help="Authorization grant type. 'auto' uses password when --username is set",
        ),
        click.option(
            "--listen-address",
            "listen_addresses",
            multiple=True,
            help=(
                "Address to bind the local redirect server to (repeatable). "
                f"Default: {', '.join(DEFAULT_BIND_ADDRESSES)}"
            ),
        ),
        click.option(
            "--oidc-redirect-url-hostname",
            default="localhost",
            show_default=True,
            help="Hostname of the redirect URL",
        ),
        click.option(
            "--skip-open-browser",
            is_flag=True,
            envvar="KUBEOIDC_SKIP_OPEN_BROWSER",
            help="Do not open the browser; print the URL instead",
        ),
        click.option(
            "--authentication-timeout-sec",
            type=float,
            default=DEFAULT_AUTHENTICATION_TIMEOUT,
            show_default=True,
            help="Seconds to wait for the browser login",
        ),
        click.option("--username", default="", help="Username for the password grant"),
        click.option(
            "--password",
            default="",
            envvar="KUBEOIDC_PASSWORD",
            help="Password for the password grant (prompted when omitted)",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def build_grant_option(
    *,
    grant_type: str,
    listen_addresses: tuple[str, ...],
    oidc_redirect_url_hostname: str,
    skip_open_browser: bool,
    authentication_timeout_sec: float,
    username: str,
    password: str,
) -> GrantOption:
    """Turn grant CLI flags into exactly one grant option."""
    if grant_type == GRANT_TYPE_AUTO:
        grant_type = GrantKind.ROPC.value if username else GrantKind.AUTH_CODE_BROWSER.value

    kind = GrantKind(grant_type)
    if kind is GrantKind.AUTH_CODE_BROWSER:
        return AuthCodeBrowserOption(
            bind_addresses=listen_addresses or DEFAULT_BIND_ADDRESSES,
            skip_open_browser=skip_open_browser,
            authentication_timeout=authentication_timeout_sec,
            redirect_url_hostname=oidc_redirect_url_hostname,
        )
    if kind is GrantKind.DEVICE_CODE:
        return DeviceCodeOption(skip_open_browser=skip_open_browser)
    if kind is GrantKind.ROPC:
        return ROPCOption(username=username, password=password)
    return ClientCredentialsOption()
