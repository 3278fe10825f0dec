"""Tests for the ExecCredential writer."""

from __future__ import annotations

import io
import json
from datetime import UTC, datetime, timedelta, timezone

from kubeoidc.core.credentialplugin import CredentialOutput, CredentialPluginWriter

EXPIRY = datetime(2019, 5, 1, 12, 34, 56, tzinfo=UTC)


def _write(environ: dict[str, str]) -> dict[str, object]:
    stream = io.StringIO()
    CredentialPluginWriter(stream=stream, environ=environ).write(
        CredentialOutput(token="YOUR_ID_TOKEN", expiry=EXPIRY)
    )
    return json.loads(stream.getvalue())


def test_default_api_version() -> None:
    assert _write({}) == {
        "kind": "ExecCredential",
        "apiVersion": "client.authentication.k8s.io/v1beta1",
        "status": {
            "token": "YOUR_ID_TOKEN",
            "expirationTimestamp": "2019-05-01T12:34:56Z",
        },
    }


def test_api_version_from_exec_info() -> None:
    exec_info = json.dumps(
        {"kind": "ExecCredential", "apiVersion": "client.authentication.k8s.io/v1", "spec": {}}
    )
    payload = _write({"KUBERNETES_EXEC_INFO": exec_info})
    assert payload["apiVersion"] == "client.authentication.k8s.io/v1"


def test_unsupported_or_invalid_exec_info_falls_back() -> None:
    unsupported = json.dumps({"apiVersion": "client.authentication.k8s.io/v1alpha1"})
    assert _write({"KUBERNETES_EXEC_INFO": unsupported})["apiVersion"].endswith("/v1beta1")
    assert _write({"KUBERNETES_EXEC_INFO": "{broken"})["apiVersion"].endswith("/v1beta1")


def test_expiry_is_rendered_in_utc() -> None:
    tokyo = timezone(timedelta(hours=9))
    payload = CredentialPluginWriter(environ={}).build_payload(
        CredentialOutput(token="t", expiry=EXPIRY.astimezone(tokyo))
    )
    assert payload["status"]["expirationTimestamp"] == "2019-05-01T12:34:56Z"
