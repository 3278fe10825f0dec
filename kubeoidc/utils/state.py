"""Default filesystem locations."""

from __future__ import annotations

import os
from pathlib import Path

LOCK_DIR_NAME = ".lock"


def default_token_cache_dir() -> Path:
    """Return the token cache directory shared with other kubectl plugins."""
    return Path.home() / ".kube" / "cache" / "oidc-login"


def resolve_token_cache_dir(cache_dir: str | Path | None = None) -> Path:
    """Resolve the token cache directory, expanding ``~``."""
    if cache_dir is None or str(cache_dir) == "":
        return default_token_cache_dir()
    return Path(cache_dir).expanduser()


def lock_dir_for(cache_dir: str | Path | None) -> Path:
    """Return the directory holding lock files for a token cache."""
    return resolve_token_cache_dir(cache_dir) / LOCK_DIR_NAME


def default_kubeconfig_paths(environ: dict[str, str] | None = None) -> list[Path]:
    """Return kubeconfig candidates in kubectl precedence order.

    ``KUBECONFIG`` may list several files separated by ``os.pathsep``; empty
    entries are skipped. Without it, ``~/.kube/config`` is used.
    """
    env = os.environ if environ is None else environ
    raw = env.get("KUBECONFIG", "")
    paths = [Path(item).expanduser() for item in raw.split(os.pathsep) if item.strip()]
    if paths:
        return paths
    return [Path.home() / ".kube" / "config"]
