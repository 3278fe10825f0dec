"""Tests for TLS verification settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from kubeoidc.core.oidc.tls import TLSConfigError, build_verify
from kubeoidc.models import TLSClientConfig


def test_default_uses_system_store() -> None:
    assert build_verify(TLSClientConfig()) is True


def test_skip_verify() -> None:
    config = TLSClientConfig(ca_cert_filenames=("/missing.crt",), skip_tls_verify=True)
    assert build_verify(config) is False


def test_missing_ca_file(tmp_path: Path) -> None:
    config = TLSClientConfig(ca_cert_filenames=(str(tmp_path / "missing.crt"),))
    with pytest.raises(TLSConfigError, match="could not load the certificate file"):
        build_verify(config)


def test_invalid_ca_data() -> None:
    with pytest.raises(TLSConfigError, match="could not decode"):
        build_verify(TLSClientConfig(ca_cert_data=("***",)))
