"""Token cache and lock maintenance commands."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from kubeoidc.core.tokencache import TokenCacheRepository
from kubeoidc.core.usecases import LOCK_NAME
from kubeoidc.utils.locks import LockError, clear_lock
from kubeoidc.utils.state import lock_dir_for


def run_clean(token_cache_dir: Path) -> None:
    """Delete every cached token under the cache directory."""
    try:
        removed = TokenCacheRepository().clear(token_cache_dir)
    except OSError as exc:
        click.echo(f"Error: could not delete the token cache: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Deleted {removed} cached token(s) from {token_cache_dir}", err=True)


def run_unlock(token_cache_dir: Path, *, force: bool) -> None:
    """Remove the get-token lock file; a held lock needs force."""
    lock_dir = lock_dir_for(token_cache_dir)
    try:
        removed = clear_lock(lock_dir, LOCK_NAME, force=force)
    except LockError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    if removed:
        click.echo(f"Lock cleared in {lock_dir}", err=True)
    else:
        click.echo("No lock to clear.", err=True)
