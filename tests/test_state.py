"""Tests for default filesystem locations and file helpers."""

from __future__ import annotations

import os
import platform
from pathlib import Path

import pytest

from kubeoidc.utils.canonical import canonical_digest, canonical_json
from kubeoidc.utils.files import atomic_write_text
from kubeoidc.utils.state import (
    default_kubeconfig_paths,
    default_token_cache_dir,
    lock_dir_for,
)


def test_default_token_cache_dir() -> None:
    assert default_token_cache_dir() == Path.home() / ".kube" / "cache" / "oidc-login"


def test_lock_dir_for() -> None:
    assert lock_dir_for("/tmp/cache") == Path("/tmp/cache/.lock")
    assert lock_dir_for(None) == default_token_cache_dir() / ".lock"


def test_kubeconfig_paths_from_env() -> None:
    raw = os.pathsep.join(["/a/config", "", "/b/config"])
    assert default_kubeconfig_paths({"KUBECONFIG": raw}) == [
        Path("/a/config"),
        Path("/b/config"),
    ]


def test_kubeconfig_paths_default() -> None:
    assert default_kubeconfig_paths({}) == [Path.home() / ".kube" / "config"]


def test_canonical_json_is_order_independent() -> None:
    assert canonical_json({"b": 1, "a": [2, {"d": 3, "c": 4}]}) == canonical_json(
        {"a": [2, {"c": 4, "d": 3}], "b": 1}
    )
    assert canonical_digest({"a": 1}) != canonical_digest({"a": 2})


@pytest.mark.skipif(platform.system() == "Windows", reason="POSIX permissions")
def test_atomic_write_keeps_existing_mode(tmp_path: Path) -> None:
    path = tmp_path / "config"
    path.write_text("old")
    os.chmod(path, 0o640)

    atomic_write_text(path, "new")

    assert path.read_text() == "new"
    assert os.stat(path).st_mode & 0o777 == 0o640
    assert [p.name for p in tmp_path.iterdir()] == ["config"]
